import numpy as np
import pandas as pd
import pytest

from config import BASELINE_STRATEGY_NAME
from preprocessing import (
    BaselineRecord,
    ProblemInstance,
    build_instance,
    extract_baseline,
    prepare,
    threshold,
)
from validation import ValidationError
from conftest import ALL_INDEX


def test_prepare_rounds_to_two_decimals(raw_matrix, raw_costs):
    raw_matrix.loc["S3", "E"] = 60.006
    rounded, _, _ = prepare(raw_matrix, raw_costs)
    assert rounded.loc["S3", "E"] == pytest.approx(60.01)
    # Rounding decides the comparison at the threshold
    assert threshold(rounded, 60.01).loc["S3", "E"] == 1


def test_prepare_does_not_mutate_input(raw_matrix, raw_costs):
    raw_matrix.loc["S1", "B"] = 80.123
    before = raw_matrix.copy()
    prepare(raw_matrix, raw_costs)
    pd.testing.assert_frame_equal(raw_matrix, before)


def test_prepare_aligns_costs_by_name(raw_matrix, raw_costs):
    shuffled = raw_costs.iloc[::-1]
    _, aligned, _ = prepare(raw_matrix, shuffled)
    assert list(aligned.index) == list(raw_matrix.index)
    assert aligned["S3"] == 5.0


def test_prepare_aligns_plain_costs_by_position(raw_matrix):
    _, aligned, _ = prepare(raw_matrix, [0, 10, 20, 5, 100])
    assert aligned["S2"] == 20.0


def test_prepare_rejects_cost_length_mismatch(raw_matrix):
    with pytest.raises(ValidationError, match="does not match"):
        prepare(raw_matrix, [0, 10, 20])


def test_prepare_rejects_missing_cost_label(raw_matrix, raw_costs):
    with pytest.raises(ValidationError, match="not aligned"):
        prepare(raw_matrix, raw_costs.drop("S2"))


def test_prepare_rejects_negative_costs(raw_matrix, raw_costs):
    raw_costs["S1"] = -1.0
    with pytest.raises(ValidationError, match="non-negative"):
        prepare(raw_matrix, raw_costs)


def test_prepare_rejects_duplicate_strategies(raw_matrix, raw_costs):
    raw_matrix.index = ["Baseline", "S1", "S1", "S3", "All"]
    with pytest.raises(ValidationError, match="duplicate strategy"):
        prepare(raw_matrix, raw_costs)


def test_prepare_warns_on_missing_labels(raw_matrix, capsys):
    unlabeled = pd.DataFrame(raw_matrix.to_numpy())
    rounded, costs, _ = prepare(unlabeled, [0, 10, 20, 5, 100])
    assert rounded.shape == (5, 5)
    assert len(costs) == 5
    assert list(rounded.index) == ["0", "1", "2", "3", "4"]
    assert list(rounded.columns) == ["0", "1", "2", "3", "4"]
    assert list(costs.index) == list(rounded.index)
    assert "results will not be meaningful" in capsys.readouterr().err


def test_prepare_aligns_weights_to_species(raw_matrix, raw_costs):
    weights = pd.Series({"E": 5.0, "D": 1.0, "C": 1.0, "B": 1.0, "A": 2.0})
    _, _, aligned = prepare(raw_matrix, raw_costs, weights)
    assert list(aligned.index) == ["A", "B", "C", "D", "E"]
    assert aligned["A"] == 2.0


def test_threshold_binarizes(raw_matrix):
    result = threshold(raw_matrix, 60.01)
    assert set(np.unique(result.to_numpy())) <= {-1, 1}
    assert result.loc["S1", "B"] == 1
    assert result.loc["S2", "B"] == -1
    assert list(result.index) == list(raw_matrix.index)


def test_threshold_is_pure_and_deterministic(raw_matrix):
    before = raw_matrix.copy()
    first = threshold(raw_matrix, 60.01)
    second = threshold(raw_matrix, 60.01)
    pd.testing.assert_frame_equal(first, second)
    pd.testing.assert_frame_equal(raw_matrix, before)


def test_threshold_of_reconstructed_matrix_is_stable(raw_matrix):
    t = 60.01
    first = threshold(raw_matrix, t)
    reconstructed = first.replace({1: t, -1: t - 1.0}).astype(float)
    pd.testing.assert_frame_equal(threshold(reconstructed, t), first)


def test_threshold_rejects_non_numeric():
    with pytest.raises(ValidationError):
        threshold(pd.DataFrame({"A": [1.0]}), "high")


def test_extract_baseline_removes_row_and_covered_species(raw_matrix, raw_costs):
    binarized = threshold(raw_matrix, 60.01)
    reduced, costs, all_index, record, weights = extract_baseline(
        binarized, raw_costs, 0, ALL_INDEX
    )
    assert record.species_names == ("A",)
    assert record.total_cost == 0
    assert "Baseline" not in reduced.index
    assert "A" not in reduced.columns
    assert list(costs.index) == ["S1", "S2", "S3", "All"]
    assert all_index == ALL_INDEX - 1
    assert reduced.index[all_index] == "All"
    assert weights is None


def test_extract_baseline_with_no_coverage_still_removes_row(raw_matrix, raw_costs):
    binarized = threshold(raw_matrix, 70.01)
    reduced, costs, all_index, record, _ = extract_baseline(binarized, raw_costs, 0, ALL_INDEX)
    assert record.species_names == ()
    assert record.species_count == 0
    assert list(reduced.columns) == ["A", "B", "C", "D", "E"]
    assert "Baseline" not in reduced.index
    assert len(costs) == 4
    assert all_index == 3


def test_extract_baseline_after_sentinel_keeps_index(raw_matrix, raw_costs):
    reordered = raw_matrix.loc[["All", "S1", "S2", "S3", "Baseline"]]
    binarized = threshold(reordered, 60.01)
    _, _, all_index, _, _ = extract_baseline(
        binarized, raw_costs.reindex(reordered.index), 4, 0
    )
    assert all_index == 0


def test_extract_baseline_rejects_same_row(raw_matrix, raw_costs):
    with pytest.raises(ValidationError, match="same row"):
        extract_baseline(threshold(raw_matrix, 60.01), raw_costs, 0, 0)


def test_extract_baseline_subsets_weights(raw_matrix, raw_costs):
    weights = pd.Series([2.0, 1.0, 1.0, 1.0, 5.0], index=list("ABCDE"))
    *_, reduced_weights = extract_baseline(
        threshold(raw_matrix, 60.01), raw_costs, 0, ALL_INDEX, weights
    )
    assert list(reduced_weights.index) == ["B", "C", "D", "E"]


def test_build_instance(instance60):
    assert isinstance(instance60, ProblemInstance)
    assert instance60.threshold == 60.01
    assert instance60.strategy_names == ["S1", "S2", "S3", "All"]
    assert instance60.species_names == ["B", "C", "D", "E"]
    assert instance60.strategy_position("All") == instance60.all_index == 3
    assert instance60.species_position("E") == 3
    assert instance60.baseline == BaselineRecord(species_names=("A",))
    assert instance60.baseline.strategy_name == BASELINE_STRATEGY_NAME
    np.testing.assert_array_equal(instance60.species_weights(), np.ones(4))


def test_build_instances_are_independent(raw_matrix, raw_costs):
    first = build_instance(raw_matrix, raw_costs, ALL_INDEX, 60.01)
    second = build_instance(raw_matrix, raw_costs, ALL_INDEX, 50.01)
    assert first.matrix.loc["S2", "B"] == -1
    assert second.matrix.loc["S2", "B"] == 1


def test_build_instance_rejects_out_of_range_all_index(raw_matrix, raw_costs):
    with pytest.raises(ValidationError, match="all-strategies"):
        build_instance(raw_matrix, raw_costs, 5, 60.01)


def test_problem_instance_requires_aligned_costs(instance60):
    with pytest.raises(ValidationError, match="cost vector"):
        ProblemInstance(
            matrix=instance60.matrix,
            costs=instance60.costs.iloc[::-1],
            all_index=instance60.all_index,
            threshold=instance60.threshold,
        )


def test_prepare_names_positional_weights_like_species(raw_matrix):
    unlabeled = pd.DataFrame(raw_matrix.to_numpy())
    _, _, weights = prepare(unlabeled, [0, 10, 20, 5, 100], [1, 1, 1, 1, 5])
    assert list(weights.index) == ["0", "1", "2", "3", "4"]
    assert weights["4"] == 5.0
