import numpy as np
import pandas as pd
import pytest

from validation import (
    StrategyReferenceError,
    ValidationError,
    missing_label_axes,
    validate_benefit_matrix,
    validate_budget,
    validate_cost_vector,
    validate_csv_file,
    validate_output_directory,
    validate_species_weights,
    validate_strategy_index,
    validate_strategy_names,
    validate_threshold,
    validate_thresholds,
)


def test_valid_benefit_matrix(raw_matrix):
    validate_benefit_matrix(raw_matrix)


@pytest.mark.parametrize(
    "matrix",
    [
        None,
        pd.DataFrame(),
        pd.DataFrame({"A": ["high", "low"]}, index=["S1", "S2"]),
        pd.DataFrame({"A": [1.0, np.nan]}, index=["S1", "S2"]),
        pd.DataFrame([[1.0, 2.0]], index=["S1"], columns=["A", "A"]),
    ],
)
def test_invalid_benefit_matrix(matrix):
    with pytest.raises(ValidationError):
        validate_benefit_matrix(matrix)


def test_missing_label_axes(raw_matrix):
    assert missing_label_axes(raw_matrix) == []
    assert missing_label_axes(pd.DataFrame(raw_matrix.to_numpy())) == ["strategy", "species"]
    blank = raw_matrix.rename(columns={"A": " "})
    assert missing_label_axes(blank) == ["species"]


def test_cost_vector_reports_missing_and_extra(raw_costs):
    strategies = pd.Index(["Baseline", "S1", "S2", "S3", "S4"])
    with pytest.raises(ValidationError) as excinfo:
        validate_cost_vector(raw_costs, strategies)
    assert "S4" in str(excinfo.value)
    assert "All" in str(excinfo.value)


def test_cost_vector_rejects_non_numeric(raw_costs):
    costs = raw_costs.astype(object)
    costs["S1"] = "ten"
    with pytest.raises(ValidationError, match="non-numeric"):
        validate_cost_vector(costs, raw_costs.index)


def test_species_weights_must_cover_every_species():
    with pytest.raises(ValidationError, match="missing"):
        validate_species_weights(pd.Series({"A": 1.0}), pd.Index(["A", "B"]))


def test_species_weights_must_be_non_negative():
    with pytest.raises(ValidationError):
        validate_species_weights(pd.Series({"A": -1.0}), pd.Index(["A"]))


@pytest.mark.parametrize("index", [-1, 5, 1.0, True, "0"])
def test_invalid_strategy_index(index):
    with pytest.raises(ValidationError):
        validate_strategy_index(index, 5, "baseline")


def test_numpy_strategy_index_is_accepted():
    validate_strategy_index(np.int64(2), 5)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), "60", None, False])
def test_invalid_threshold(value):
    with pytest.raises(ValidationError):
        validate_threshold(value)


@pytest.mark.parametrize("value", [-0.01, float("inf"), "100", True])
def test_invalid_budget(value):
    with pytest.raises(ValidationError):
        validate_budget(value)


def test_valid_budgets():
    validate_budget(0)
    validate_budget(5_657_184.0)
    validate_budget(np.float64(12.5))


def test_thresholds_keep_their_order():
    assert validate_thresholds((70.01, 50.01)) == [70.01, 50.01]


def test_strategy_reference_error_names_every_missing_strategy():
    with pytest.raises(StrategyReferenceError) as excinfo:
        validate_strategy_names(["S1", "S98", "S99"], ["S1", "S2"], "cost vector")
    assert excinfo.value.missing == ["S98", "S99"]
    assert "S98, S99" in str(excinfo.value)
    assert "cost vector" in str(excinfo.value)


def test_output_directory_is_created(tmp_path):
    target = tmp_path / "nested" / "outputs"
    validate_output_directory(target)
    assert target.is_dir()


def test_output_directory_cannot_be_a_file(tmp_path):
    path = tmp_path / "taken"
    path.write_text("")
    with pytest.raises(ValidationError):
        validate_output_directory(path)


def test_csv_file_checks(tmp_path):
    with pytest.raises(ValidationError, match="not found"):
        validate_csv_file(str(tmp_path / "missing.csv"))

    with pytest.raises(ValidationError, match="not a file"):
        validate_csv_file(str(tmp_path))

    text_file = tmp_path / "benefits.txt"
    text_file.write_text("a,b\n")
    with pytest.raises(ValidationError, match="CSV"):
        validate_csv_file(str(text_file))
