"""Immutable result records returned by the engines.

Field names are snake_case in Python and camelCase on the wire
(``to_dict()``). Values are rounded when a record is built, never before.
Infinite statistics stay infinite on the models and become None on the wire,
so payloads are strict JSON.
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def rounded(value: float | None, digits: int) -> float | None:
    """Round a finite value for presentation; None and non-finite values pass through."""
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        return value
    return round(value, digits)


def _finite_or_none(value: Any) -> Any:
    """Replace non-finite floats with None, recursing into dicts, lists and tuples."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {key: _finite_or_none(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_finite_or_none(item) for item in value)
    return value


class ResultModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_dict(self) -> dict[str, Any]:
        return _finite_or_none(self.model_dump(by_alias=True))


# ---------- Categorical ----------


class ContingencySummary(ResultModel):
    rows: list[str]
    cols: list[str]
    data: dict[str, dict[str, int]]
    row_totals: dict[str, int]
    col_totals: dict[str, int]
    grand_total: int


class RiskMeasures(ResultModel):
    is_2x2: bool = Field(alias="is2x2")
    odds_ratio: float | None = None
    odds_ratio_ci: tuple[float, float] | None = Field(default=None, alias="oddsRatioCI")
    relative_risk: float | None = None
    relative_risk_ci: tuple[float, float] | None = Field(default=None, alias="relativeRiskCI")


class Chi2Result(ResultModel):
    variable1: str
    variable2: str
    chi2: float
    degrees_of_freedom: int
    p_value: float
    significant: bool
    likelihood_ratio: float
    likelihood_ratio_p_value: float
    linear_by_linear: float
    linear_by_linear_p_value: float
    n_valid_cases: int
    low_expected_cells: int
    contingency_table: ContingencySummary
    risk_measures: RiskMeasures


# ---------- Continuous ----------


class CorrelationResult(ResultModel):
    variable1: str
    variable2: str
    correlation: float
    p_value: float
    n: int
    type: str = "pearson"
    significant: bool


class TTestResult(ResultModel):
    variable: str
    grouping_variable: str
    group1: str
    group2: str
    mean1: float
    mean2: float
    sd1: float
    sd2: float
    n1: int
    n2: int
    t_statistic: float
    degrees_of_freedom: int
    p_value: float
    significant: bool


class GroupSummary(ResultModel):
    group: str
    n: int
    mean: float
    sd: float


class AnovaResult(ResultModel):
    dependent_variable: str
    independent_variable: str
    groups: list[str]
    sum_squares_between: float
    sum_squares_within: float
    df_between: int
    df_within: int
    f_statistic: float
    p_value: float
    significant: bool
    group_stats: list[GroupSummary]


# ---------- Regression ----------


class Coefficient(ResultModel):
    variable: str
    coefficient: float
    standard_error: float
    t_value: float
    p_value: float


class RegressionResult(ResultModel):
    dependent_variable: str
    independent_variables: list[str]
    coefficients: list[Coefficient]
    n: int
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float
    df_residual: int
    p_value: float
    significant: bool

    @property
    def intercept(self) -> float:
        return self.coefficients[0].coefficient

    @property
    def slope(self) -> float:
        return self.coefficients[1].coefficient
