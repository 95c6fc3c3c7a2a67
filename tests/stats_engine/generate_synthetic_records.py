import numpy as np


def generate_synthetic_records(
    seed: int = 42,
    n_records: int | None = None,
    n_categorical: int | None = None,
    n_numeric: int | None = None,
    missing_rate: float = 0.0,
) -> list[dict]:
    """
    Generate a synthetic dataset in the record format expected by handle_request().

    Every variable is drawn independently of every other, so any association
    found between two of them is a false positive.

    Parameters
    ----------
    seed : int
        Random seed for reproducibility.
    n_records : int or None
        Number of records. If None, randomly chosen between 100–400.
    n_categorical : int or None
        Number of categorical variables (``cat_1``, ...). If None, randomly chosen between 2–4.
    n_numeric : int or None
        Number of numeric variables (``num_1``, ...). If None, randomly chosen between 1–3.
    missing_rate : float
        Probability that any single value is replaced by None.

    Returns
    -------
    list of dict
        One dict per record.
    """
    rng = np.random.default_rng(seed)

    if n_records is None:
        n_records = int(rng.integers(100, 401))
    if n_categorical is None:
        n_categorical = int(rng.integers(2, 5))
    if n_numeric is None:
        n_numeric = int(rng.integers(1, 4))

    columns = {}
    for idx in range(n_categorical):
        columns[f"cat_{idx + 1}"] = _generate_categorical_column(rng, n_records)
    for idx in range(n_numeric):
        columns[f"num_{idx + 1}"] = _generate_numeric_column(rng, n_records)

    records = []
    for i in range(n_records):
        record = {}
        for name, values in columns.items():
            record[name] = None if rng.random() < missing_rate else values[i]
        records.append(record)

    return records


def _generate_categorical_column(rng, n_records):
    """Labels drawn from 2–4 levels with random (but fixed) probabilities."""
    n_levels = int(rng.integers(2, 5))
    probabilities = rng.dirichlet(np.ones(n_levels) * 5)
    labels = [f"level_{chr(ord('a') + k)}" for k in range(n_levels)]
    return [str(label) for label in rng.choice(labels, size=n_records, p=probabilities)]


def _generate_numeric_column(rng, n_records):
    """Normally distributed measurements rounded to one decimal."""
    mean = rng.uniform(10, 100)
    sd = rng.uniform(1, 20)
    return [round(float(x), 1) for x in rng.normal(mean, sd, size=n_records)]
