from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- Analysis kinds ----------

ASSOCIATION_KINDS = ("chi2", "correlation")
COMPARISON_KINDS = ("ttest", "anova", "regression")

RESULT_KEYS = {
    "chi2": "chi2Tests",
    "correlation": "correlations",
    "ttest": "tTests",
    "anova": "anovaTests",
    "regression": "regressions",
}


# ---------- Request ----------


class AnalysisRequest(BaseModel):
    """
    Analysis request payload.

    ``analysis_sub_type`` is left as free text: unsupported or malformed kinds
    are not a validation error, they produce an empty result.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: list[dict[str, Any]] | None = None
    variables: list[str] | None = None
    analysis_sub_type: str | None = Field(default=None, alias="analysisSubType")
    base_variable: str | None = Field(default=None, alias="baseVariable")
    crossing_variables: list[str] | None = Field(default=None, alias="crossingVariables")

    @field_validator("analysis_sub_type", mode="before")
    @classmethod
    def _non_text_kind_is_unsupported(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None
