import logging
from dataclasses import dataclass

import numpy as np

from src.stats_engine.values import as_dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ContingencyTable:
    """
    Dense row x column count matrix for two categorical variables.

    Totals are derived from ``counts`` on access, never stored.
    """

    row_variable: str
    col_variable: str
    row_labels: tuple[str, ...]
    col_labels: tuple[str, ...]
    counts: np.ndarray

    def __post_init__(self):
        expected_shape = (len(self.row_labels), len(self.col_labels))
        if self.counts.shape != expected_shape:
            raise ValueError(
                f"counts shape {self.counts.shape} does not match labels {expected_shape}"
            )
        if (self.counts < 0).any():
            raise ValueError("counts must be non-negative")
        self.counts.flags.writeable = False

    @property
    def shape(self) -> tuple[int, int]:
        return self.counts.shape

    @property
    def is_2x2(self) -> bool:
        return self.shape == (2, 2)

    @property
    def row_totals(self) -> np.ndarray:
        return self.counts.sum(axis=1)

    @property
    def col_totals(self) -> np.ndarray:
        return self.counts.sum(axis=0)

    @property
    def grand_total(self) -> int:
        return int(self.counts.sum())

    @property
    def expected(self) -> np.ndarray:
        """Expected counts under independence: row total x column total / grand total."""
        if self.grand_total == 0:
            return np.zeros(self.shape, dtype=float)
        return np.outer(self.row_totals, self.col_totals) / self.grand_total

    def as_mapping(self) -> dict[str, dict[str, int]]:
        """Nested ``{row: {col: count}}`` mapping including zero cells."""
        return {
            row: {col: int(self.counts[i, j]) for j, col in enumerate(self.col_labels)}
            for i, row in enumerate(self.row_labels)
        }


def build_contingency_table(data, row_variable: str, col_variable: str) -> ContingencyTable:
    """
    Cross-tabulate two categorical variables.

    Categories are the sorted distinct non-missing labels of each variable
    across all records. Only records where both values are present are
    counted, so a category observed solely next to a missing partner value
    appears as an all-zero row or column.

    Parameters
    ----------
    data : list of dict or ClassifiedDataset
        Dataset records.
    row_variable : str
        Variable defining the rows.
    col_variable : str
        Variable defining the columns.

    Returns
    -------
    ContingencyTable
        Dense count matrix.
    """
    dataset = as_dataset(data)
    row_column = dataset.column(row_variable)
    col_column = dataset.column(col_variable)

    row_labels = row_column.categories
    col_labels = col_column.categories
    row_index = {label: i for i, label in enumerate(row_labels)}
    col_index = {label: j for j, label in enumerate(col_labels)}

    counts = np.zeros((len(row_labels), len(col_labels)), dtype=int)
    for row_label, col_label in zip(row_column.labels(), col_column.labels()):
        if row_label is None or col_label is None:
            continue
        counts[row_index[row_label], col_index[col_label]] += 1

    logger.debug(
        f"Contingency table {row_variable} x {col_variable}: "
        f"{counts.shape[0]}x{counts.shape[1]}, N={int(counts.sum())}"
    )

    return ContingencyTable(
        row_variable=row_variable,
        col_variable=col_variable,
        row_labels=row_labels,
        col_labels=col_labels,
        counts=counts,
    )
