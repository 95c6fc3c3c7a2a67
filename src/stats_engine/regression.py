"""Ordinary least squares with a single predictor."""

import logging
import math

import numpy as np

from src.stats_engine.config import EngineConfig, get_default_config
from src.stats_engine.distributions import f_p_value, t_two_tailed_p_value
from src.stats_engine.results import Coefficient, RegressionResult, rounded
from src.stats_engine.values import as_dataset

logger = logging.getLogger(__name__)


def _t_ratio(estimate: float, standard_error: float) -> float:
    if standard_error > 0:
        return estimate / standard_error
    if estimate == 0:
        return 0.0
    return math.copysign(math.inf, estimate)


def simple_linear_regression(
    data,
    dependent_variable: str,
    independent_variables: list[str],
    config: EngineConfig | None = None,
) -> RegressionResult | None:
    """
    Fit ``y = intercept + slope * x`` by ordinary least squares.

    Only one predictor is supported; requests with more are answered with
    None rather than a multivariate fit.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    dependent_variable : str
        Numeric outcome ``y``.
    independent_variables : list of str
        Exactly one numeric predictor ``x``.
    config : EngineConfig, optional
        Significance threshold and rounding.

    Returns
    -------
    RegressionResult or None
        Coefficients (intercept first) with standard errors and t-tests, R²,
        adjusted R² and the overall F-test. None when there are fewer than
        ``len(independent_variables) + 2`` valid pairs or either variable has
        no variance.
    """
    config = config or get_default_config()
    if len(independent_variables) != 1:
        logger.debug(
            f"Skipping regression of {dependent_variable}: "
            f"{len(independent_variables)} predictors (only one supported)"
        )
        return None

    predictor = independent_variables[0]
    x, y = as_dataset(data).paired_numbers(predictor, dependent_variable)
    n = len(x)

    if n < len(independent_variables) + 2:
        logger.debug(
            f"Skipping regression {dependent_variable} ~ {predictor}: only {n} valid pair(s)"
        )
        return None

    x_mean = float(np.mean(x))
    y_mean = float(np.mean(y))
    sxx = float(np.sum((x - x_mean) ** 2))
    sxy = float(np.sum((x - x_mean) * (y - y_mean)))
    ss_total = float(np.sum((y - y_mean) ** 2))

    if sxx <= 0 or ss_total <= 0:
        logger.debug(f"Skipping regression {dependent_variable} ~ {predictor}: no variance")
        return None

    slope = sxy / sxx
    intercept = y_mean - slope * x_mean

    residuals = y - (intercept + slope * x)
    ss_residual = float(np.sum(residuals**2))
    ss_regression = ss_total - ss_residual

    df_residual = n - 2
    r_squared = 1.0 - ss_residual / ss_total
    adjusted_r_squared = 1.0 - (1.0 - r_squared) * (n - 1) / df_residual

    mse = ss_residual / df_residual
    se_slope = math.sqrt(mse / sxx)
    se_intercept = math.sqrt(mse * (1.0 / n + x_mean**2 / sxx))

    t_slope = _t_ratio(slope, se_slope)
    t_intercept = _t_ratio(intercept, se_intercept)

    if mse > 0:
        f_statistic = ss_regression / mse
    else:
        f_statistic = math.inf
    p_value = f_p_value(f_statistic, 1, df_residual)

    digits = config.statistic_digits
    coefficients = [
        Coefficient(
            variable="Intercept",
            coefficient=rounded(intercept, digits),
            standard_error=rounded(se_intercept, digits),
            t_value=rounded(t_intercept, digits),
            p_value=rounded(t_two_tailed_p_value(t_intercept, df_residual), digits),
        ),
        Coefficient(
            variable=predictor,
            coefficient=rounded(slope, digits),
            standard_error=rounded(se_slope, digits),
            t_value=rounded(t_slope, digits),
            p_value=rounded(t_two_tailed_p_value(t_slope, df_residual), digits),
        ),
    ]

    return RegressionResult(
        dependent_variable=dependent_variable,
        independent_variables=[predictor],
        coefficients=coefficients,
        n=n,
        r_squared=rounded(r_squared, digits),
        adjusted_r_squared=rounded(adjusted_r_squared, digits),
        f_statistic=rounded(f_statistic, digits),
        df_residual=df_residual,
        p_value=rounded(p_value, digits),
        significant=p_value < config.alpha,
    )
