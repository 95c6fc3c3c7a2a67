"""Unit tests for src.stats_engine.values."""

import math

import numpy as np
import pytest

from src.stats_engine.config import EngineConfig
from src.stats_engine.values import (
    MISSING,
    ClassifiedDataset,
    ValueKind,
    as_dataset,
    classify_value,
)

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def records():
    return [
        {"age": 34, "sex": "F", "smoker": "yes", "score": "12.5"},
        {"age": 51, "sex": "M", "smoker": "no", "score": "n/a"},
        {"age": None, "sex": "F", "smoker": "", "score": 9},
        {"age": 47, "sex": "M", "score": 11},
    ]


# ─────────────────────────────────────────────────────────────────────────────
# classify_value
# ─────────────────────────────────────────────────────────────────────────────


class TestClassifyValue:
    @pytest.mark.parametrize("raw", [None, "", "   ", math.nan, np.nan])
    def test_missing(self, raw):
        assert classify_value(raw) is MISSING

    @pytest.mark.parametrize(
        "raw,number,label",
        [
            (3, 3.0, "3"),
            (2.5, 2.5, "2.5"),
            (4.0, 4.0, "4"),
            ("7", 7.0, "7"),
            (" 1.25 ", 1.25, "1.25"),
            ("7.0", 7.0, "7"),
            ("007", 7.0, "7"),
            ("1.50", 1.5, "1.5"),
            (np.int64(5), 5.0, "5"),
        ],
    )
    def test_numeric(self, raw, number, label):
        value = classify_value(raw)
        assert value.kind is ValueKind.NUMERIC
        assert value.number == number
        assert value.label == label

    @pytest.mark.parametrize("raw,label", [("yes", "yes"), (" F ", "F"), (True, "True")])
    def test_categorical(self, raw, label):
        value = classify_value(raw)
        assert value.kind is ValueKind.CATEGORICAL
        assert value.number is None
        assert value.label == label

    def test_non_finite_text_is_categorical(self):
        assert classify_value("inf").kind is ValueKind.CATEGORICAL
        assert classify_value(math.inf).kind is ValueKind.CATEGORICAL


# ─────────────────────────────────────────────────────────────────────────────
# ClassifiedDataset
# ─────────────────────────────────────────────────────────────────────────────


class TestClassifiedDataset:
    def test_column_in_record_order(self, records):
        dataset = ClassifiedDataset(records)
        assert dataset.column("age").numbers() == [34.0, 51.0, None, 47.0]

    def test_absent_key_is_missing(self, records):
        dataset = ClassifiedDataset(records)
        assert dataset.column("smoker").labels() == ["yes", "no", None, None]

    def test_unknown_variable_is_all_missing(self, records):
        column = ClassifiedDataset(records).column("weight")
        assert len(column) == len(records)
        assert column.n_present == 0

    def test_column_is_cached(self, records):
        dataset = ClassifiedDataset(records)
        assert dataset.column("sex") is dataset.column("sex")

    def test_categories_sorted(self, records):
        assert ClassifiedDataset(records).column("sex").categories == ("F", "M")

    def test_numeric_codes_share_one_category(self):
        dataset = ClassifiedDataset([{"arm": 7}, {"arm": "7.0"}, {"arm": "007"}, {"arm": 1}])
        assert dataset.column("arm").categories == ("1", "7")
        assert dataset.column("arm").labels() == ["7", "7", "7", "1"]

    def test_paired_numbers_skips_non_numeric(self, records):
        x, y = ClassifiedDataset(records).paired_numbers("age", "score")
        np.testing.assert_array_equal(x, [34.0, 47.0])
        np.testing.assert_array_equal(y, [12.5, 11.0])

    def test_grouped_numbers(self, records):
        groups = ClassifiedDataset(records).grouped_numbers("age", "sex")
        assert list(groups) == ["F", "M"]
        np.testing.assert_array_equal(groups["F"], [34.0])
        np.testing.assert_array_equal(groups["M"], [51.0, 47.0])

    def test_empty_dataset(self):
        dataset = ClassifiedDataset([])
        assert len(dataset) == 0
        assert dataset.column("x").n_present == 0

    def test_as_dataset_passthrough(self, records):
        dataset = ClassifiedDataset(records)
        assert as_dataset(dataset) is dataset


class TestCapabilities:
    def test_numeric_capability(self, records):
        config = EngineConfig()
        dataset = ClassifiedDataset(records)
        assert dataset.column("age").is_numeric_capable(config)
        assert dataset.column("score").is_numeric_capable(config)
        assert not dataset.column("sex").is_numeric_capable(config)

    def test_categorical_capability(self, records):
        config = EngineConfig()
        dataset = ClassifiedDataset(records)
        assert dataset.column("sex").is_categorical_capable(config)
        assert dataset.column("smoker").is_categorical_capable(config)

    def test_too_many_categories(self):
        config = EngineConfig(max_categories=3)
        dataset = ClassifiedDataset([{"id": i} for i in range(5)])
        assert not dataset.column("id").is_categorical_capable(config)
        assert dataset.column("id").is_numeric_capable(config)

    def test_single_category_not_capable(self):
        dataset = ClassifiedDataset([{"g": "a"}, {"g": "a"}])
        assert not dataset.column("g").is_categorical_capable(EngineConfig())
