import logging
import math

import matplotlib.pyplot as plt
import numpy as np
from scipy.stats import probplot

from src.stats_engine.schema import RESULT_KEYS

logger = logging.getLogger(__name__)

# Floor for p-values on the -log10 axis
_MIN_P_VALUE = 1e-16
# Fewer tests than this make the p-value Q-Q plot meaningless
_MIN_QQ_TESTS = 3


def _test_label(kind: str, test: dict) -> str:
    if kind == "chi2":
        return f"{test['variable1']} x {test['variable2']}"
    if kind == "correlation":
        return f"{test['variable1']} ~ {test['variable2']}"
    if kind == "ttest":
        return f"{test['variable']} by {test['groupingVariable']}"
    if kind == "anova":
        return f"{test['dependentVariable']} by {test['independentVariable']}"
    if kind == "regression":
        return f"{test['dependentVariable']} ~ {', '.join(test['independentVariables'])}"
    return kind


def _plot_p_values(ax, labels, p_values, alpha):
    """
    Plot -log10 p-values per test with the significance threshold.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    labels : list of str
        Test labels.
    p_values : array-like
        p-values in [0, 1].
    alpha : float
        Significance threshold drawn as a vertical line.
    """
    scores = -np.log10(np.clip(np.asarray(p_values, dtype=float), _MIN_P_VALUE, 1.0))
    positions = np.arange(len(labels))
    colors = ["tab:red" if p < alpha else "tab:blue" for p in p_values]

    ax.barh(positions, scores, color=colors, alpha=0.7, edgecolor="black")
    ax.axvline(-math.log10(alpha), color="black", linestyle="--", label=f"p = {alpha}")
    ax.set_yticks(positions)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlabel("-log10(p-value)")
    ax.set_title("Test p-values")
    ax.legend()


def _plot_p_value_qq(ax, p_values):
    """
    Q-Q plot of p-values against the Uniform(0, 1) distribution expected under H0.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    p_values : array-like
        p-values in [0, 1].
    """
    probplot(np.asarray(p_values, dtype=float), dist="uniform", plot=ax)
    ax.set_xlabel("Uniform quantiles")
    ax.set_ylabel("Ordered p-values")
    ax.set_title("Q-Q Plot for p-values")
    ax.grid(True, alpha=0.3)


def _plot_odds_ratios(ax, labels, odds_ratios, lower, upper):
    """
    Forest plot of odds ratios with 95% confidence intervals on a log scale.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    labels : list of str
        Table labels.
    odds_ratios, lower, upper : array-like
        Odds ratios and confidence bounds, all positive and finite.
    """
    odds_ratios = np.asarray(odds_ratios, dtype=float)
    errors = np.vstack([odds_ratios - np.asarray(lower), np.asarray(upper) - odds_ratios])
    positions = np.arange(len(labels))

    ax.errorbar(odds_ratios, positions, xerr=errors, fmt="s", color="black", capsize=4)
    ax.axvline(1.0, color="tab:red", linestyle="--", linewidth=1)
    ax.set_xscale("log")
    ax.set_yticks(positions)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlabel("Odds ratio (95% CI)")
    ax.set_title("Odds ratios for 2x2 tables")


def plot_analysis_output(output: dict, kind: str, save_path: str = None, alpha: float = 0.05):
    """
    Plot the results of one analysis.

    Always draws a -log10(p) chart of the tests. For chi-squared analyses an
    odds-ratio forest plot is added for 2x2 tables with a confidence interval,
    and with enough tests a Q-Q plot of the p-values against Uniform(0, 1).

    Parameters
    ----------
    output : dict
        Response payload of the analysis.
    kind : str
        Analysis kind the payload belongs to.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.
    alpha : float, optional
        Significance threshold. Defaults to 0.05.

    Raises
    ------
    RuntimeError
        If the payload contains no tests to plot.
    """
    tests = output.get(RESULT_KEYS.get(kind, ""), [])
    if len(tests) == 0:
        raise RuntimeError(f"No tests found in output for analysis kind '{kind}'")

    labels = [_test_label(kind, t) for t in tests]
    p_values = [t["pValue"] for t in tests]

    forest = []
    if kind == "chi2":
        for label, test in zip(labels, tests):
            risk = test["riskMeasures"]
            odds_ratio = risk["oddsRatio"]
            ci = risk["oddsRatioCI"]
            if ci is None or not odds_ratio or math.isinf(odds_ratio):
                continue
            forest.append((label, odds_ratio, ci[0], ci[1]))

        n_skipped = sum(1 for t in tests if t["riskMeasures"]["is2x2"]) - len(forest)
        if n_skipped > 0:
            logger.warning(f"Skipped {n_skipped} 2x2 table(s) without an odds ratio CI")

    show_qq = len(tests) >= _MIN_QQ_TESTS
    num_plots = 1 + bool(forest) + show_qq
    fig, axes = plt.subplots(1, num_plots, figsize=(6 * num_plots, 1 + 0.5 * len(tests) + 3))

    if num_plots == 1:
        axes = [axes]
    axes = list(axes)

    _plot_p_values(axes.pop(0), labels, p_values, alpha)

    if forest:
        forest_labels, odds_ratios, lower, upper = zip(*forest)
        _plot_odds_ratios(axes.pop(0), forest_labels, odds_ratios, lower, upper)

    if show_qq:
        _plot_p_value_qq(axes.pop(0), p_values)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info(f"Plot saved to {save_path}")
    else:
        plt.show()
