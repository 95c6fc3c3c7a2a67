"""Statistical engine for association, group comparison and regression analyses."""

from src.stats_engine.categorical import (
    chi_squared_test,
    likelihood_ratio,
    linear_by_linear,
    pearson_chi_squared,
    risk_measures,
)
from src.stats_engine.config import EngineConfig, get_default_config
from src.stats_engine.contingency import ContingencyTable, build_contingency_table
from src.stats_engine.continuous import (
    GroupStatistics,
    one_way_anova,
    pearson_correlation,
    two_sample_t_test,
)
from src.stats_engine.describe import VariableSummary, describe_variables
from src.stats_engine.distributions import (
    chi_squared_p_value,
    f_p_value,
    normal_cdf,
    t_cdf,
    t_two_tailed_p_value,
)
from src.stats_engine.orchestration import (
    AnalysisRequestError,
    handle_association_request,
    handle_comparison_request,
    handle_request,
    run_association_analysis,
    run_comparison_analysis,
)
from src.stats_engine.regression import simple_linear_regression
from src.stats_engine.schema import AnalysisRequest
from src.stats_engine.values import ClassifiedDataset, Value, ValueKind, classify_value

__all__ = [
    # Request handling
    "AnalysisRequest",
    "AnalysisRequestError",
    "handle_association_request",
    "handle_comparison_request",
    "handle_request",
    "run_association_analysis",
    "run_comparison_analysis",
    # Configuration
    "EngineConfig",
    "get_default_config",
    # Distributions
    "chi_squared_p_value",
    "f_p_value",
    "normal_cdf",
    "t_cdf",
    "t_two_tailed_p_value",
    # Values
    "ClassifiedDataset",
    "Value",
    "ValueKind",
    "classify_value",
    # Categorical tests
    "ContingencyTable",
    "build_contingency_table",
    "chi_squared_test",
    "likelihood_ratio",
    "linear_by_linear",
    "pearson_chi_squared",
    "risk_measures",
    # Continuous tests
    "GroupStatistics",
    "one_way_anova",
    "pearson_correlation",
    "two_sample_t_test",
    # Regression
    "simple_linear_regression",
    # Descriptive statistics
    "VariableSummary",
    "describe_variables",
]
