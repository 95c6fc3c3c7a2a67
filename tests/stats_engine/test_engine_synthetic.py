"""Integration tests on synthetic datasets.

Generates many datasets whose variables are mutually independent and checks
that the chi-squared test does not reject H0 more often than expected (~5%),
and that every analysis kind runs end to end on messy data.
"""

import math

import pytest

from src.stats_engine import handle_request
from src.stats_engine.schema import RESULT_KEYS
from tests.stats_engine.generate_synthetic_records import generate_synthetic_records

N_SIMULATIONS = 300
ALPHA = 0.05
MAX_FALSE_POSITIVE_RATE = ALPHA + 5e-2


@pytest.mark.integration_stats_engine
def test_chi2_false_positive_rate_under_null():
    """With independent variables, at most ~5% of chi-squared p-values should be < 0.05."""
    rejections = 0
    n_tests = 0

    for seed in range(N_SIMULATIONS):
        records = generate_synthetic_records(seed=seed)
        variables = [name for name in records[0] if name.startswith("cat_")]
        output = handle_request(
            {"data": records, "variables": variables, "analysisSubType": "chi2"}
        )

        for test in output["chi2Tests"]:
            n_tests += 1
            if test["pValue"] < ALPHA:
                rejections += 1

    false_positive_rate = rejections / n_tests

    assert false_positive_rate <= MAX_FALSE_POSITIVE_RATE, (
        f"False positive rate {false_positive_rate:.3f} ({rejections}/{n_tests}) "
        f"exceeds maximum allowed rate of {MAX_FALSE_POSITIVE_RATE}"
    )


@pytest.mark.integration_stats_engine
@pytest.mark.parametrize("kind", list(RESULT_KEYS))
def test_every_kind_on_messy_data(kind):
    for seed in range(20):
        records = generate_synthetic_records(seed=seed, missing_rate=0.1)
        output = handle_request(
            {"data": records, "variables": list(records[0]), "analysisSubType": kind}
        )

        assert "error" not in output
        for test in output[RESULT_KEYS[kind]]:
            assert 0.0 <= test["pValue"] <= 1.0
            assert not math.isnan(test["pValue"])


def test_generator_is_reproducible():
    first = generate_synthetic_records(seed=5, n_records=50, n_categorical=2, n_numeric=1)
    second = generate_synthetic_records(seed=5, n_records=50, n_categorical=2, n_numeric=1)
    assert first == second
    assert set(first[0]) == {"cat_1", "cat_2", "num_1"}
