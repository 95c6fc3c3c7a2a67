import logging

import pandas as pd

from src.stats_engine.results import ResultModel, rounded
from src.stats_engine.values import ClassifiedDataset, as_dataset

logger = logging.getLogger(__name__)

SUMMARY_DIGITS = 2


class VariableSummary(ResultModel):
    name: str
    type: str
    count: int
    missing: int
    unique: int
    mean: float | None = None
    median: float | None = None
    std: float | None = None
    min: float | None = None
    max: float | None = None
    mode: str | None = None


def describe_variable(data, name: str) -> VariableSummary:
    """
    Summarize one variable.

    A variable is reported as numeric when more than half of its present
    values are numeric; statistics are then computed over the numeric values
    only, with the population standard deviation. Otherwise it is reported as
    text with its most frequent label.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    name : str
        Variable to summarize.

    Returns
    -------
    VariableSummary
        Counts and descriptive statistics rounded to two digits.
    """
    column = as_dataset(data).column(name)
    labels = pd.Series([label for label in column.labels() if label is not None], dtype=object)
    count = column.n_present
    missing = len(column) - count
    unique = int(labels.nunique())

    if column.n_numeric > 0 and column.n_numeric > 0.5 * count:
        numbers = pd.Series([x for x in column.numbers() if x is not None], dtype=float)
        return VariableSummary(
            name=name,
            type="numeric",
            count=count,
            missing=missing,
            unique=unique,
            mean=rounded(numbers.mean(), SUMMARY_DIGITS),
            median=rounded(numbers.median(), SUMMARY_DIGITS),
            std=rounded(numbers.std(ddof=0), SUMMARY_DIGITS),
            min=rounded(numbers.min(), SUMMARY_DIGITS),
            max=rounded(numbers.max(), SUMMARY_DIGITS),
        )

    mode = str(labels.value_counts(sort=False).idxmax()) if count else None
    return VariableSummary(
        name=name,
        type="text",
        count=count,
        missing=missing,
        unique=unique,
        mode=mode,
    )


def describe_variables(data, variables: list[str] | None = None) -> list[VariableSummary]:
    """Summaries for ``variables`` (default: every variable in the dataset)."""
    dataset: ClassifiedDataset = as_dataset(data)
    names = variables if variables is not None else dataset.variable_names
    logger.info(f"Describing {len(names)} variable(s) over {len(dataset)} record(s)")
    return [describe_variable(dataset, name) for name in names]
