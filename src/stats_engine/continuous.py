import logging
import math
from dataclasses import dataclass

import numpy as np

from src.stats_engine.config import EngineConfig, get_default_config
from src.stats_engine.distributions import f_p_value, t_two_tailed_p_value
from src.stats_engine.results import (
    AnovaResult,
    CorrelationResult,
    GroupSummary,
    TTestResult,
    rounded,
)
from src.stats_engine.values import as_dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupStatistics:
    """Size, mean and sample standard deviation of one group."""

    label: str
    n: int
    mean: float
    sd: float

    @classmethod
    def from_values(cls, label: str, values: np.ndarray) -> "GroupStatistics":
        """
        Raises
        ------
        ValueError
            If fewer than two values are given (sample SD undefined).
        """
        if len(values) < 2:
            raise ValueError(f"Group '{label}' needs at least 2 values, got {len(values)}")
        return cls(
            label=label,
            n=len(values),
            mean=float(np.mean(values)),
            sd=float(np.std(values, ddof=1)),
        )

    @property
    def variance(self) -> float:
        return self.sd**2

    def summary(self, digits: int) -> GroupSummary:
        return GroupSummary(
            group=self.label,
            n=self.n,
            mean=rounded(self.mean, digits),
            sd=rounded(self.sd, digits),
        )


def correlation_t_statistic(r: float, n: int) -> float:
    """``t = r * sqrt((n - 2) / (1 - r**2))``; infinite for a perfect correlation."""
    if n <= 2:
        return 0.0
    denominator = 1.0 - r * r
    if denominator <= 0:
        return math.copysign(math.inf, r)
    return r * math.sqrt((n - 2) / denominator)


def pearson_correlation(
    data, variable1: str, variable2: str, config: EngineConfig | None = None
) -> CorrelationResult:
    """
    Pearson correlation between two numeric variables.

    Records where either value is not numeric are ignored. With fewer than
    two valid pairs the result is ``correlation=0, p=1`` rather than None.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    variable1, variable2 : str
        Variables to correlate.
    config : EngineConfig, optional
        Significance threshold and rounding.

    Returns
    -------
    CorrelationResult
        Correlation with a two-tailed t-based p-value.
    """
    config = config or get_default_config()
    x, y = as_dataset(data).paired_numbers(variable1, variable2)
    n = len(x)

    if n < 2:
        logger.debug(f"Correlation {variable1} x {variable2}: only {n} valid pair(s)")
        return CorrelationResult(
            variable1=variable1,
            variable2=variable2,
            correlation=0.0,
            p_value=1.0,
            n=n,
            significant=False,
        )

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    sum_y2 = float(np.sum(y * y))

    numerator = n * sum_xy - sum_x * sum_y
    denominator_sq = (n * sum_x2 - sum_x**2) * (n * sum_y2 - sum_y**2)
    if denominator_sq <= 0:
        r = 0.0
    else:
        r = max(-1.0, min(1.0, numerator / math.sqrt(denominator_sq)))

    t = correlation_t_statistic(r, n)
    p_value = t_two_tailed_p_value(t, n - 2)

    digits = config.statistic_digits
    return CorrelationResult(
        variable1=variable1,
        variable2=variable2,
        correlation=rounded(r, digits),
        p_value=rounded(p_value, digits),
        n=n,
        significant=p_value < config.alpha,
    )


def two_sample_t_test(
    data, numeric_variable: str, group_variable: str, config: EngineConfig | None = None
) -> TTestResult | None:
    """
    Pooled-variance (Student) two-sample t-test.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    numeric_variable : str
        Outcome compared between groups.
    group_variable : str
        Categorical variable defining exactly two groups.
    config : EngineConfig, optional
        Significance threshold and rounding.

    Returns
    -------
    TTestResult or None
        None unless there are exactly two groups with at least two values each
        and the pooled variance and mean difference are not both zero.
    """
    config = config or get_default_config()
    groups = as_dataset(data).grouped_numbers(numeric_variable, group_variable)

    if len(groups) != 2:
        logger.debug(
            f"Skipping t-test {numeric_variable} by {group_variable}: {len(groups)} group(s)"
        )
        return None
    if any(len(values) < 2 for values in groups.values()):
        logger.debug(f"Skipping t-test {numeric_variable} by {group_variable}: group with n < 2")
        return None

    stats1, stats2 = (GroupStatistics.from_values(label, v) for label, v in groups.items())

    df = stats1.n + stats2.n - 2
    pooled_variance = ((stats1.n - 1) * stats1.variance + (stats2.n - 1) * stats2.variance) / df
    standard_error = math.sqrt(pooled_variance) * math.sqrt(1 / stats1.n + 1 / stats2.n)
    difference = stats1.mean - stats2.mean

    if standard_error > 0:
        t = difference / standard_error
    elif difference != 0:
        t = math.copysign(math.inf, difference)
    else:
        logger.debug(f"Skipping t-test {numeric_variable} by {group_variable}: no variance")
        return None

    p_value = t_two_tailed_p_value(t, df)

    estimate_digits = config.estimate_digits
    statistic_digits = config.statistic_digits
    return TTestResult(
        variable=numeric_variable,
        grouping_variable=group_variable,
        group1=stats1.label,
        group2=stats2.label,
        mean1=rounded(stats1.mean, estimate_digits),
        mean2=rounded(stats2.mean, estimate_digits),
        sd1=rounded(stats1.sd, estimate_digits),
        sd2=rounded(stats2.sd, estimate_digits),
        n1=stats1.n,
        n2=stats2.n,
        t_statistic=rounded(t, statistic_digits),
        degrees_of_freedom=df,
        p_value=rounded(p_value, statistic_digits),
        significant=p_value < config.alpha,
    )


def one_way_anova(
    data, dependent_variable: str, independent_variable: str, config: EngineConfig | None = None
) -> AnovaResult | None:
    """
    One-way analysis of variance.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    dependent_variable : str
        Numeric outcome.
    independent_variable : str
        Categorical factor.
    config : EngineConfig, optional
        Significance threshold and rounding.

    Returns
    -------
    AnovaResult or None
        None with fewer than two groups, any group with fewer than two values,
        or no variance at all. No post-hoc comparisons are made.
    """
    config = config or get_default_config()
    groups = as_dataset(data).grouped_numbers(dependent_variable, independent_variable)

    if len(groups) < 2:
        logger.debug(
            f"Skipping ANOVA {dependent_variable} by {independent_variable}: "
            f"{len(groups)} group(s)"
        )
        return None
    if any(len(values) < 2 for values in groups.values()):
        logger.debug(
            f"Skipping ANOVA {dependent_variable} by {independent_variable}: group with n < 2"
        )
        return None

    group_stats = [GroupStatistics.from_values(label, v) for label, v in groups.items()]
    all_values = np.concatenate(list(groups.values()))
    grand_mean = float(np.mean(all_values))

    ss_between = float(sum(s.n * (s.mean - grand_mean) ** 2 for s in group_stats))
    ss_within = float(sum(np.sum((v - np.mean(v)) ** 2) for v in groups.values()))

    df_between = len(groups) - 1
    df_within = len(all_values) - len(groups)

    ms_between = ss_between / df_between
    ms_within = ss_within / df_within

    if ms_within > 0:
        f_statistic = ms_between / ms_within
    elif ms_between > 0:
        f_statistic = math.inf
    else:
        logger.debug(
            f"Skipping ANOVA {dependent_variable} by {independent_variable}: no variance"
        )
        return None

    p_value = f_p_value(f_statistic, df_between, df_within)

    statistic_digits = config.statistic_digits
    return AnovaResult(
        dependent_variable=dependent_variable,
        independent_variable=independent_variable,
        groups=[s.label for s in group_stats],
        sum_squares_between=rounded(ss_between, statistic_digits),
        sum_squares_within=rounded(ss_within, statistic_digits),
        df_between=df_between,
        df_within=df_within,
        f_statistic=rounded(f_statistic, statistic_digits),
        p_value=rounded(p_value, statistic_digits),
        significant=p_value < config.alpha,
        group_stats=[s.summary(config.estimate_digits) for s in group_stats],
    )
