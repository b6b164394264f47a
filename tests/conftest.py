import pandas as pd
import pytest

from preprocessing import build_instance

# Row position of the "All" strategy in the raw test matrix
ALL_INDEX = 4


@pytest.fixture
def raw_matrix():
    """
    Small benefit matrix (survival probabilities in %).

    At t=60.01 the baseline saves A; S1 saves B and C, S2 saves D, S3 saves E.
    At t=50.01 S2 also saves B. At t=70.01 the baseline saves nothing and S3
    saves nothing.
    """
    return pd.DataFrame(
        {
            "A": [70.0, 20.0, 0.0, 30.0, 95.0],
            "B": [10.0, 80.0, 55.0, 30.0, 95.0],
            "C": [10.0, 65.0, 0.0, 30.0, 95.0],
            "D": [10.0, 20.0, 90.0, 30.0, 95.0],
            "E": [10.0, 20.0, 0.0, 61.0, 95.0],
        },
        index=["Baseline", "S1", "S2", "S3", "All"],
    )


@pytest.fixture
def raw_costs():
    return pd.Series(
        [0.0, 10.0, 20.0, 5.0, 100.0],
        index=["Baseline", "S1", "S2", "S3", "All"],
    )


@pytest.fixture
def instance60(raw_matrix, raw_costs):
    return build_instance(raw_matrix, raw_costs, ALL_INDEX, 60.01)


@pytest.fixture
def instance50(raw_matrix, raw_costs):
    return build_instance(raw_matrix, raw_costs, ALL_INDEX, 50.01)


@pytest.fixture
def instance70(raw_matrix, raw_costs):
    return build_instance(raw_matrix, raw_costs, ALL_INDEX, 70.01)


@pytest.fixture
def combo_matrix():
    """Matrix with atomic strategies S3, S6, S7, S9, S10 and precomputed S12, S13."""
    species = ["A", "B", "C", "D", "E", "F"]
    rows = {
        "Baseline": [0, 0, 0, 0, 0, 0],
        "S3": [90, 0, 0, 0, 0, 0],
        "S6": [0, 90, 0, 0, 0, 0],
        "S7": [0, 0, 90, 0, 0, 0],
        "S9": [0, 0, 0, 90, 0, 0],
        "S10": [0, 0, 0, 0, 90, 0],
        "S12": [90, 0, 90, 0, 90, 0],
        "S13": [0, 90, 0, 90, 90, 0],
        "All": [90, 90, 90, 90, 90, 90],
    }
    return pd.DataFrame.from_dict(rows, orient="index", columns=species).astype(float)


@pytest.fixture
def combo_costs():
    return pd.Series(
        {
            "Baseline": 0.0,
            "S3": 3.0,
            "S6": 4.0,
            "S7": 5.0,
            "S9": 6.0,
            "S10": 7.0,
            "S12": 15.0,
            "S13": 17.0,
            "All": 100.0,
        }
    )


@pytest.fixture
def combo_instance(combo_matrix, combo_costs):
    return build_instance(combo_matrix, combo_costs, 8, 60.01)
