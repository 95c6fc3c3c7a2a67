"""
Request handling: enumerate variable pairs, run the engines, assemble payloads.

Two request shapes are supported:

- comparison requests (``ttest``, ``anova``, ``regression``)
- association requests (``chi2``, ``correlation``)

Request-level problems raise ``AnalysisRequestError``; the ``handle_*``
functions turn those into ``{"error": message}`` payloads. Pairs that do not
meet a test's preconditions are left out of the result list.
"""

import logging
from itertools import combinations, permutations
from typing import Any

from pydantic import ValidationError

from src.stats_engine.categorical import chi_squared_test
from src.stats_engine.config import EngineConfig, get_default_config
from src.stats_engine.continuous import one_way_anova, pearson_correlation, two_sample_t_test
from src.stats_engine.regression import simple_linear_regression
from src.stats_engine.schema import (
    ASSOCIATION_KINDS,
    COMPARISON_KINDS,
    RESULT_KEYS,
    AnalysisRequest,
)
from src.stats_engine.values import ClassifiedDataset

logger = logging.getLogger(__name__)


class AnalysisRequestError(ValueError):
    """Raised when a request cannot be analysed at all."""

    pass


# ─────────────────────────────────────────────────────────────────────────────
# Pair enumeration
# ─────────────────────────────────────────────────────────────────────────────


def chi2_pairs(
    variables: list[str],
    base_variable: str | None = None,
    crossing_variables: list[str] | None = None,
) -> list[tuple[str, str]]:
    """Base variable against each crossing variable, else every unordered pair."""
    if base_variable and crossing_variables:
        return [(base_variable, crossing) for crossing in crossing_variables]
    return list(combinations(variables, 2))


def numeric_variables(
    dataset: ClassifiedDataset, variables: list[str], config: EngineConfig
) -> list[str]:
    return [v for v in variables if dataset.column(v).is_numeric_capable(config)]


def categorical_variables(
    dataset: ClassifiedDataset, variables: list[str], config: EngineConfig
) -> list[str]:
    return [v for v in variables if dataset.column(v).is_categorical_capable(config)]


def role_pairs(
    dataset: ClassifiedDataset, variables: list[str], config: EngineConfig
) -> list[tuple[str, str]]:
    """
    Ordered (numeric, categorical) role assignments.

    A variable capable of both roles is tried in both, against every other
    variable capable of the opposite role.
    """
    numeric = numeric_variables(dataset, variables, config)
    categorical = categorical_variables(dataset, variables, config)
    return [(num, cat) for num in numeric for cat in categorical if num != cat]


def _unique(variables: list[str]) -> list[str]:
    return list(dict.fromkeys(variables))


# ─────────────────────────────────────────────────────────────────────────────
# Analyses
# ─────────────────────────────────────────────────────────────────────────────


def _validate(request: AnalysisRequest) -> ClassifiedDataset:
    if not request.data:
        raise AnalysisRequestError("No data provided")
    if not request.variables:
        raise AnalysisRequestError("No variables selected")
    return ClassifiedDataset(request.data)


def _coerce(request: AnalysisRequest | dict[str, Any]) -> AnalysisRequest:
    if isinstance(request, AnalysisRequest):
        return request
    return AnalysisRequest.model_validate(request)


def run_association_analysis(
    request: AnalysisRequest | dict[str, Any], config: EngineConfig | None = None
) -> dict[str, list[dict[str, Any]]]:
    """
    Run chi-squared or correlation tests over the requested variables.

    Parameters
    ----------
    request : AnalysisRequest or dict
        Payload with ``data``, ``variables``, ``analysisSubType`` and, for
        chi2, optional ``baseVariable`` and ``crossingVariables``.
    config : EngineConfig, optional
        Engine configuration. Defaults to ``get_default_config()``.

    Returns
    -------
    dict
        ``{"chi2Tests": [...]}`` or ``{"correlations": [...]}``; ``{}`` for an
        unsupported analysis kind.

    Raises
    ------
    AnalysisRequestError
        If data or variables are empty, or too few variables are given to form
        a single pair.
    """
    config = config or get_default_config()
    request = _coerce(request)
    dataset = _validate(request)
    variables = _unique(request.variables)
    kind = request.analysis_sub_type

    if kind == "chi2":
        has_crossing = bool(request.base_variable and request.crossing_variables)
        if not has_crossing and len(variables) < 2:
            raise AnalysisRequestError("At least 2 variables are required for chi-squared analysis")

        results = []
        for var1, var2 in chi2_pairs(variables, request.base_variable, request.crossing_variables):
            result = chi_squared_test(dataset, var1, var2, config)
            if result is not None:
                results.append(result.to_dict())

    elif kind == "correlation":
        if len(variables) < 2:
            raise AnalysisRequestError("At least 2 variables are required for correlation analysis")

        numeric = numeric_variables(dataset, variables, config)
        results = [
            pearson_correlation(dataset, var1, var2, config).to_dict()
            for var1, var2 in combinations(numeric, 2)
        ]

    else:
        logger.warning(f"Unsupported association analysis kind: {kind!r}")
        return {}

    logger.info(f"{kind} analysis completed: {len(results)} test(s)")
    return {RESULT_KEYS[kind]: results}


def run_comparison_analysis(
    request: AnalysisRequest | dict[str, Any], config: EngineConfig | None = None
) -> dict[str, list[dict[str, Any]]]:
    """
    Run t-tests, ANOVA or simple regressions over the requested variables.

    Parameters
    ----------
    request : AnalysisRequest or dict
        Payload with ``data``, ``variables`` and ``analysisSubType``.
    config : EngineConfig, optional
        Engine configuration. Defaults to ``get_default_config()``.

    Returns
    -------
    dict
        ``{"tTests": [...]}``, ``{"anovaTests": [...]}`` or
        ``{"regressions": [...]}``; ``{}`` for an unsupported analysis kind.

    Raises
    ------
    AnalysisRequestError
        If data or variables are empty.
    """
    config = config or get_default_config()
    request = _coerce(request)
    dataset = _validate(request)
    variables = _unique(request.variables)
    kind = request.analysis_sub_type

    results = []
    if kind == "ttest":
        for num_var, cat_var in role_pairs(dataset, variables, config):
            result = two_sample_t_test(dataset, num_var, cat_var, config)
            if result is not None:
                results.append(result.to_dict())

    elif kind == "anova":
        for dep_var, indep_var in role_pairs(dataset, variables, config):
            result = one_way_anova(dataset, dep_var, indep_var, config)
            if result is not None:
                results.append(result.to_dict())

    elif kind == "regression":
        numeric = numeric_variables(dataset, variables, config)
        for dep_var, indep_var in permutations(numeric, 2):
            result = simple_linear_regression(dataset, dep_var, [indep_var], config)
            if result is not None:
                results.append(result.to_dict())

    else:
        logger.warning(f"Unsupported comparison analysis kind: {kind!r}")
        return {}

    logger.info(f"{kind} analysis completed: {len(results)} test(s)")
    return {RESULT_KEYS[kind]: results}


# ─────────────────────────────────────────────────────────────────────────────
# Payload handlers
# ─────────────────────────────────────────────────────────────────────────────


def _handle(runner, payload, config) -> dict[str, Any]:
    try:
        return runner(payload, config)
    except AnalysisRequestError as e:
        logger.error(f"Analysis request rejected: {e}")
        return {"error": str(e)}
    except ValidationError as e:
        logger.error(f"Malformed analysis request: {e}")
        return {"error": f"Invalid request: {e.error_count()} validation error(s)"}


def handle_association_request(
    payload: dict[str, Any], config: EngineConfig | None = None
) -> dict[str, Any]:
    """Association request to response payload; failures become ``{"error": ...}``."""
    return _handle(run_association_analysis, payload, config)


def handle_comparison_request(
    payload: dict[str, Any], config: EngineConfig | None = None
) -> dict[str, Any]:
    """Comparison request to response payload; failures become ``{"error": ...}``."""
    return _handle(run_comparison_analysis, payload, config)


def handle_request(payload: dict[str, Any], config: EngineConfig | None = None) -> dict[str, Any]:
    """Route a payload to the association or comparison handler by analysis kind."""
    kind = payload.get("analysisSubType") if isinstance(payload, dict) else None
    if kind in ASSOCIATION_KINDS:
        return handle_association_request(payload, config)
    if kind in COMPARISON_KINDS:
        return handle_comparison_request(payload, config)
    # Unknown kinds still go through validation so empty requests are reported
    return handle_comparison_request(payload, config)
