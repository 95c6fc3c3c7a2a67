import logging
import math

import numpy as np

from src.stats_engine.config import EngineConfig, get_default_config
from src.stats_engine.contingency import ContingencyTable, build_contingency_table
from src.stats_engine.distributions import chi_squared_p_value
from src.stats_engine.results import (
    Chi2Result,
    ContingencySummary,
    RiskMeasures,
    rounded,
)

logger = logging.getLogger(__name__)

# Expected counts below this are flagged in the chi-squared output
LOW_EXPECTED_COUNT = 5


def pearson_chi_squared(table: ContingencyTable) -> tuple[float, int]:
    """
    Pearson chi-squared statistic of a contingency table.

    Parameters
    ----------
    table : ContingencyTable
        Dense count matrix.

    Returns
    -------
    tuple of (float, int)
        Statistic summed over cells with positive expected count, and degrees
        of freedom ``(rows - 1) * (cols - 1)``.
    """
    observed = table.counts.astype(float)
    expected = table.expected
    mask = expected > 0

    chi2 = float(np.sum((observed[mask] - expected[mask]) ** 2 / expected[mask]))
    n_rows, n_cols = table.shape
    df = (n_rows - 1) * (n_cols - 1)

    return chi2, df


def likelihood_ratio(table: ContingencyTable) -> float:
    """G-squared statistic: ``2 * sum(O * ln(O / E))`` over cells with O > 0 and E > 0."""
    observed = table.counts.astype(float)
    expected = table.expected
    mask = (observed > 0) & (expected > 0)

    return float(2.0 * np.sum(observed[mask] * np.log(observed[mask] / expected[mask])))


def linear_by_linear(table: ContingencyTable) -> float:
    """
    Linear-by-linear association statistic ``M2 = (N - 1) * r**2``.

    Rows and columns are scored 1..k in their sorted order and ``r`` is the
    count-weighted Pearson correlation of the scores. Sorting is
    lexicographic, so the statistic only means something when the category
    labels sort in their ordinal order.
    """
    n = table.grand_total
    if n <= 1:
        return 0.0

    counts = table.counts.astype(float)
    row_scores = np.arange(1, table.shape[0] + 1, dtype=float)
    col_scores = np.arange(1, table.shape[1] + 1, dtype=float)

    row_mean = np.sum(table.row_totals * row_scores) / n
    col_mean = np.sum(table.col_totals * col_scores) / n

    row_dev = row_scores - row_mean
    col_dev = col_scores - col_mean

    covariance = float(np.sum(counts * np.outer(row_dev, col_dev)))
    row_ss = float(np.sum(table.row_totals * row_dev**2))
    col_ss = float(np.sum(table.col_totals * col_dev**2))

    if row_ss <= 0 or col_ss <= 0:
        return 0.0

    r = covariance / math.sqrt(row_ss * col_ss)
    return (n - 1) * r * r


def risk_measures(table: ContingencyTable, config: EngineConfig | None = None) -> RiskMeasures:
    """
    Odds ratio and relative risk with 95% confidence intervals for a 2x2 table.

    Cells are read as ``a, b`` (first row) and ``c, d`` (second row); the
    first row is the exposed group and the first column the outcome.

    Parameters
    ----------
    table : ContingencyTable
        Contingency table. Anything other than 2x2 yields null measures.
    config : EngineConfig, optional
        Supplies the CI normal quantile and rounding.

    Returns
    -------
    RiskMeasures
        Each measure is None when its definition requires a zero cell or total
        to be positive.
    """
    config = config or get_default_config()
    if not table.is_2x2:
        return RiskMeasures(is_2x2=False)

    a, b, c, d = (float(x) for x in table.counts.flatten())
    z = config.confidence_z
    digits = config.estimate_digits

    odds_ratio = None
    odds_ratio_ci = None
    if b * c > 0:
        odds_ratio = (a * d) / (b * c)
        if a > 0 and d > 0:
            se_log_or = math.sqrt(1 / a + 1 / b + 1 / c + 1 / d)
            log_or = math.log(odds_ratio)
            odds_ratio_ci = (
                rounded(math.exp(log_or - z * se_log_or), digits),
                rounded(math.exp(log_or + z * se_log_or), digits),
            )

    relative_risk = None
    relative_risk_ci = None
    if a + b > 0 and c + d > 0 and c > 0:
        p1 = a / (a + b)
        p2 = c / (c + d)
        relative_risk = p1 / p2
        if a > 0:
            se_log_rr = math.sqrt((1 - p1) / a + (1 - p2) / c)
            log_rr = math.log(relative_risk)
            relative_risk_ci = (
                rounded(math.exp(log_rr - z * se_log_rr), digits),
                rounded(math.exp(log_rr + z * se_log_rr), digits),
            )

    return RiskMeasures(
        is_2x2=True,
        odds_ratio=rounded(odds_ratio, digits),
        odds_ratio_ci=odds_ratio_ci,
        relative_risk=rounded(relative_risk, digits),
        relative_risk_ci=relative_risk_ci,
    )


def _summarize_table(table: ContingencyTable) -> ContingencySummary:
    return ContingencySummary(
        rows=list(table.row_labels),
        cols=list(table.col_labels),
        data=table.as_mapping(),
        row_totals={label: int(t) for label, t in zip(table.row_labels, table.row_totals)},
        col_totals={label: int(t) for label, t in zip(table.col_labels, table.col_totals)},
        grand_total=table.grand_total,
    )


def chi_squared_test(
    data, variable1: str, variable2: str, config: EngineConfig | None = None
) -> Chi2Result | None:
    """
    Chi-squared association test between two categorical variables.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    variable1 : str
        Row variable (exposure in a 2x2 table).
    variable2 : str
        Column variable (outcome in a 2x2 table).
    config : EngineConfig, optional
        Significance threshold and rounding.

    Returns
    -------
    Chi2Result or None
        None when either variable has fewer than two categories or no record
        has both values, since the test has zero degrees of freedom.
    """
    config = config or get_default_config()
    table = build_contingency_table(data, variable1, variable2)

    n_rows, n_cols = table.shape
    if n_rows < 2 or n_cols < 2:
        logger.debug(
            f"Skipping chi-squared {variable1} x {variable2}: "
            f"{n_rows} x {n_cols} categories"
        )
        return None
    if table.grand_total == 0:
        logger.debug(f"Skipping chi-squared {variable1} x {variable2}: no complete records")
        return None

    chi2, df = pearson_chi_squared(table)
    p_value = chi_squared_p_value(chi2, df)

    g2 = likelihood_ratio(table)
    g2_p_value = chi_squared_p_value(g2, df)

    m2 = linear_by_linear(table)
    m2_p_value = chi_squared_p_value(m2, 1)

    low_expected_cells = int(np.sum(table.expected < LOW_EXPECTED_COUNT))

    digits = config.statistic_digits
    return Chi2Result(
        variable1=variable1,
        variable2=variable2,
        chi2=rounded(chi2, digits),
        degrees_of_freedom=df,
        p_value=rounded(p_value, digits),
        significant=p_value < config.alpha,
        likelihood_ratio=rounded(g2, digits),
        likelihood_ratio_p_value=rounded(g2_p_value, digits),
        linear_by_linear=rounded(m2, digits),
        linear_by_linear_p_value=rounded(m2_p_value, digits),
        n_valid_cases=table.grand_total,
        low_expected_cells=low_expected_cells,
        contingency_table=_summarize_table(table),
        risk_measures=risk_measures(table, config),
    )
