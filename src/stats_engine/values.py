"""
Value classification for raw dataset records.

Each raw cell is classified once into a tagged value: numeric, categorical or
missing. Engines read the classified columns instead of re-inferring types
inside every test.
"""

import enum
import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any

import numpy as np
import pandas as pd

from src.stats_engine.config import EngineConfig

logger = logging.getLogger(__name__)


class ValueKind(enum.Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    MISSING = "missing"


@dataclass(frozen=True)
class Value:
    """A classified cell. Numeric values also carry a label for grouping."""

    kind: ValueKind
    number: float | None = None
    label: str | None = None

    @property
    def is_missing(self) -> bool:
        return self.kind is ValueKind.MISSING

    @property
    def is_numeric(self) -> bool:
        return self.kind is ValueKind.NUMERIC


MISSING = Value(ValueKind.MISSING)


def _numeric_label(number: float) -> str:
    if float(number).is_integer():
        return str(int(number))
    return str(number)


def classify_value(raw: Any) -> Value:
    """
    Classify one raw cell.

    Parameters
    ----------
    raw : Any
        Number, text, boolean, None or NaN.

    Returns
    -------
    Value
        ``MISSING`` for None, NaN and blank text; numeric for finite numbers
        and text that parses as a finite number; categorical otherwise.
    """
    if raw is None:
        return MISSING

    # bool is an int subclass, treat it as a category
    if isinstance(raw, (bool, np.bool_)):
        return Value(ValueKind.CATEGORICAL, label=str(bool(raw)))

    if isinstance(raw, (int, float, np.integer, np.floating)):
        number = float(raw)
        if math.isnan(number):
            return MISSING
        if math.isinf(number):
            return Value(ValueKind.CATEGORICAL, label=str(number))
        return Value(ValueKind.NUMERIC, number=number, label=_numeric_label(number))

    text = str(raw).strip()
    if not text:
        return MISSING

    try:
        number = float(text)
    except ValueError:
        return Value(ValueKind.CATEGORICAL, label=text)

    if not math.isfinite(number):
        return Value(ValueKind.CATEGORICAL, label=text)
    return Value(ValueKind.NUMERIC, number=number, label=_numeric_label(number))


@dataclass(frozen=True)
class Column:
    """Classified values of one variable, in record order."""

    name: str
    values: tuple[Value, ...]

    def __len__(self) -> int:
        return len(self.values)

    @cached_property
    def n_present(self) -> int:
        return sum(1 for v in self.values if not v.is_missing)

    @cached_property
    def n_numeric(self) -> int:
        return sum(1 for v in self.values if v.is_numeric)

    @cached_property
    def categories(self) -> tuple[str, ...]:
        """Distinct non-missing labels, sorted lexicographically."""
        return tuple(sorted({v.label for v in self.values if not v.is_missing}))

    def numbers(self) -> list[float | None]:
        return [v.number if v.is_numeric else None for v in self.values]

    def labels(self) -> list[str | None]:
        return [None if v.is_missing else v.label for v in self.values]

    def is_numeric_capable(self, config: EngineConfig) -> bool:
        """At least two numbers, forming more than ``numeric_share`` of present values."""
        if self.n_numeric < 2:
            return False
        return self.n_numeric > config.numeric_share * self.n_present

    def is_categorical_capable(self, config: EngineConfig) -> bool:
        """Between two and ``max_categories`` distinct labels."""
        return 2 <= len(self.categories) <= config.max_categories


class ClassifiedDataset:
    """
    Records with lazily classified columns.

    A column is classified the first time it is requested and reused for the
    lifetime of the dataset object, which is created fresh per request.
    """

    def __init__(self, records: Iterable[Mapping[str, Any]]):
        records = list(records)
        self._frame = pd.DataFrame(records) if records else pd.DataFrame()
        self._n_records = len(records)
        self._columns: dict[str, Column] = {}

    def __len__(self) -> int:
        return self._n_records

    @property
    def variable_names(self) -> list[str]:
        return [str(name) for name in self._frame.columns]

    def column(self, name: str) -> Column:
        if name not in self._columns:
            if name in self._frame.columns:
                raw_values = self._frame[name].tolist()
                values = tuple(classify_value(raw) for raw in raw_values)
            else:
                logger.debug(f"Variable '{name}' not present in dataset")
                values = (MISSING,) * self._n_records
            self._columns[name] = Column(name=name, values=values)
        return self._columns[name]

    def paired_numbers(self, x_name: str, y_name: str) -> tuple[np.ndarray, np.ndarray]:
        """Numeric (x, y) pairs from records where both values are numeric."""
        xs = self.column(x_name).numbers()
        ys = self.column(y_name).numbers()
        pairs = [(x, y) for x, y in zip(xs, ys) if x is not None and y is not None]
        if not pairs:
            return np.array([], dtype=float), np.array([], dtype=float)
        x_arr, y_arr = zip(*pairs)
        return np.array(x_arr, dtype=float), np.array(y_arr, dtype=float)

    def grouped_numbers(self, numeric_name: str, group_name: str) -> dict[str, np.ndarray]:
        """Numeric values keyed by the group label of the same record, labels sorted."""
        groups: dict[str, list[float]] = {}
        numbers = self.column(numeric_name).numbers()
        labels = self.column(group_name).labels()
        for number, label in zip(numbers, labels):
            if number is not None and label is not None:
                groups.setdefault(label, []).append(number)
        return {label: np.array(groups[label], dtype=float) for label in sorted(groups)}


def as_dataset(data) -> ClassifiedDataset:
    """Wrap raw records in a ``ClassifiedDataset`` (no-op for an existing one)."""
    if isinstance(data, ClassifiedDataset):
        return data
    return ClassifiedDataset(data)
