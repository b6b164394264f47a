"""
Benefit Matrix Preprocessing for Strategy Portfolio Coverage Optimization.

Turns a raw strategies x species benefit matrix into a problem instance the
optimizer can work with:

1. prepare(): round benefits, align costs (and optional species weights) to
   the matrix labels
2. threshold(): binarize benefits against a survival threshold
   (1 = species covered, -1 = not covered)
3. extract_baseline(): bank the species the "do nothing" strategy already
   covers and remove its row and those species from the matrix

build_instance() runs the three steps on a fresh copy of the inputs and
returns an immutable ProblemInstance. Nothing here mutates its arguments.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from config import BASELINE_INDEX, BASELINE_STRATEGY_NAME, COVERED, NOT_COVERED, ROUNDING_DIGITS
from logger import get_logger
from validation import (
    ValidationError,
    missing_label_axes,
    validate_benefit_matrix,
    validate_cost_vector,
    validate_species_weights,
    validate_strategy_index,
    validate_threshold,
)

# Module logger
logger = get_logger(__name__)

CostsLike = Union[pd.Series, Sequence[float], np.ndarray]


@dataclass(frozen=True)
class BaselineRecord:
    """Species covered for free by the baseline strategy of one instance."""

    species_names: tuple[str, ...] = ()
    strategy_name: str = BASELINE_STRATEGY_NAME
    total_cost: float = 0.0

    @property
    def species_count(self) -> int:
        return len(self.species_names)


@dataclass(frozen=True, eq=False)
class ProblemInstance:
    """
    One preprocessed optimization problem.

    Attributes:
        matrix: Thresholded strategies x species matrix (baseline removed)
        costs: Cost per strategy, indexed identically to matrix rows
        all_index: Row position of the "apply all strategies" sentinel
            (None when the matrix has no such strategy)
        threshold: Survival threshold used to binarize the matrix
        baseline: Banked baseline coverage
        weights: Optional per-species objective weights, indexed like columns
        composites: Composite strategy name -> atomic strategy names it applies
    """

    matrix: pd.DataFrame
    costs: pd.Series
    all_index: Optional[int]
    threshold: float
    baseline: BaselineRecord = field(default_factory=BaselineRecord)
    weights: Optional[pd.Series] = None
    composites: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.matrix.index.duplicated().any() or self.matrix.columns.duplicated().any():
            raise ValidationError("Problem instance requires unique strategy and species labels")

        if not self.costs.index.equals(self.matrix.index):
            raise ValidationError(
                "Problem instance cost vector must be indexed exactly like the matrix rows"
            )

        if self.weights is not None and not self.weights.index.equals(self.matrix.columns):
            raise ValidationError(
                "Problem instance weights must be indexed exactly like the matrix columns"
            )

        if self.all_index is not None:
            validate_strategy_index(self.all_index, len(self.matrix), "all-strategies")

        # Name <-> position maps, built once per instance
        object.__setattr__(self, "composites", MappingProxyType(dict(self.composites)))
        object.__setattr__(
            self, "_strategy_positions", {name: i for i, name in enumerate(self.matrix.index)}
        )
        object.__setattr__(
            self, "_species_positions", {name: j for j, name in enumerate(self.matrix.columns)}
        )

    @property
    def strategy_names(self) -> list[str]:
        return list(self.matrix.index)

    @property
    def species_names(self) -> list[str]:
        return list(self.matrix.columns)

    @property
    def n_strategies(self) -> int:
        return self.matrix.shape[0]

    @property
    def n_species(self) -> int:
        return self.matrix.shape[1]

    def strategy_position(self, name: str) -> int:
        return self._strategy_positions[name]

    def species_position(self, name: str) -> int:
        return self._species_positions[name]

    def species_weights(self) -> np.ndarray:
        """Objective weight of each species column (all ones when unweighted)."""
        if self.weights is None:
            return np.ones(self.n_species)
        return self.weights.to_numpy(dtype=float)


def _align_costs(costs: CostsLike, strategies: pd.Index) -> pd.Series:
    """Label costs by strategy name, by name when possible, else by position."""
    if isinstance(costs, pd.Series) and not isinstance(costs.index, pd.RangeIndex):
        validate_cost_vector(costs, strategies)
        aligned = costs.reindex(strategies)
    else:
        values = np.asarray(costs, dtype=float).ravel()
        if len(values) != len(strategies):
            raise ValidationError(
                f"Cost vector length ({len(values)}) does not match the number of "
                f"strategies in the benefit matrix ({len(strategies)})."
            )
        aligned = pd.Series(values, index=strategies)
        validate_cost_vector(aligned, strategies)
    return aligned.astype(float)


def _align_weights(weights: CostsLike, species: pd.Index) -> pd.Series:
    """Label species weights by species name, by name when possible, else by position."""
    if isinstance(weights, pd.Series) and not isinstance(weights.index, pd.RangeIndex):
        validate_species_weights(weights, species)
        aligned = weights.reindex(species)
    else:
        values = np.asarray(weights, dtype=float).ravel()
        if len(values) != len(species):
            raise ValidationError(
                f"Species weights length ({len(values)}) does not match the number of "
                f"species in the benefit matrix ({len(species)})."
            )
        aligned = pd.Series(values, index=species)
        validate_species_weights(aligned, species)
    return aligned.astype(float)


def prepare(
    matrix: pd.DataFrame,
    costs: CostsLike,
    weights: Optional[CostsLike] = None,
) -> tuple[pd.DataFrame, pd.Series, Optional[pd.Series]]:
    """
    Round the benefit matrix and align costs and weights to its labels.

    Rounding to ROUNDING_DIGITS keeps float noise out of the later threshold
    comparisons.

    Args:
        matrix: Raw strategies x species benefit matrix
        costs: Cost per strategy; a Series is aligned by name, any other
            sequence is aligned by position
        weights: Optional per-species weights, aligned the same way

    Returns:
        tuple: (rounded_matrix, aligned_costs, aligned_weights)

    Raises:
        ValidationError: If the matrix is malformed or costs/weights do not
            line up with it
    """
    validate_benefit_matrix(matrix)

    unlabeled = missing_label_axes(matrix)
    if unlabeled:
        logger.warning(
            f"Missing {' and '.join(unlabeled)} label information, "
            f"results will not be meaningful"
        )

    rounded = matrix.astype(float).round(ROUNDING_DIGITS)
    aligned_costs = _align_costs(costs, rounded.index)
    aligned_weights = _align_weights(weights, rounded.columns) if weights is not None else None

    # Results join names with separators, so positional labels become strings
    rounded.index = rounded.index.map(str)
    rounded.columns = rounded.columns.map(str)
    aligned_costs.index = rounded.index
    if aligned_weights is not None:
        aligned_weights.index = rounded.columns

    return rounded, aligned_costs, aligned_weights


def threshold(matrix: pd.DataFrame, t: float) -> pd.DataFrame:
    """
    Binarize a benefit matrix: 1 where benefit >= t, -1 elsewhere.

    Returns a new DataFrame with the same labels; the input is untouched.
    """
    validate_threshold(t)
    values = np.where(matrix.to_numpy(dtype=float) >= t, COVERED, NOT_COVERED)
    return pd.DataFrame(values, index=matrix.index.copy(), columns=matrix.columns.copy())


def extract_baseline(
    thresholded: pd.DataFrame,
    costs: pd.Series,
    baseline_index: int,
    all_index: int,
    weights: Optional[pd.Series] = None,
) -> tuple[pd.DataFrame, pd.Series, int, BaselineRecord, Optional[pd.Series]]:
    """
    Bank the baseline strategy's coverage and remove it from the problem.

    The baseline row is always removed, together with every species column
    it covers. Its cost entry is dropped and, since a row in front of it
    disappears, the sentinel index moves up by one when the baseline precedes
    it.

    Args:
        thresholded: Thresholded matrix
        costs: Costs aligned to the matrix rows
        baseline_index: Row position of the baseline strategy
        all_index: Row position of the "apply all" sentinel
        weights: Optional species weights aligned to the matrix columns

    Returns:
        tuple: (reduced_matrix, reduced_costs, reduced_all_index,
                baseline_record, reduced_weights)
    """
    n = len(thresholded)
    validate_strategy_index(baseline_index, n, "baseline")
    validate_strategy_index(all_index, n, "all-strategies")
    if baseline_index == all_index:
        raise ValidationError(
            f"Baseline and all-strategies sentinel cannot be the same row ({baseline_index})"
        )

    covered = thresholded.iloc[baseline_index].to_numpy() > 0
    baseline_species = tuple(thresholded.columns[covered])

    keep_rows = [i for i in range(n) if i != baseline_index]
    reduced = thresholded.iloc[keep_rows, ~covered].copy()
    reduced_costs = costs.iloc[keep_rows].copy()
    reduced_weights = weights[~covered].copy() if weights is not None else None
    reduced_all_index = all_index - 1 if baseline_index < all_index else all_index

    record = BaselineRecord(species_names=baseline_species)

    logger.debug(
        f"Baseline '{thresholded.index[baseline_index]}' covers {record.species_count} species; "
        f"{reduced.shape[0]} strategies x {reduced.shape[1]} species remain"
    )
    return reduced, reduced_costs, reduced_all_index, record, reduced_weights


def build_instance(
    matrix: pd.DataFrame,
    costs: CostsLike,
    all_index: int,
    t: float,
    weights: Optional[CostsLike] = None,
    baseline_index: int = BASELINE_INDEX,
) -> ProblemInstance:
    """
    Build a fresh problem instance: prepare -> threshold -> extract_baseline.

    Args:
        matrix: Raw benefit matrix
        costs: Cost per strategy
        all_index: Row position of the "apply all" sentinel in the raw matrix
        t: Survival threshold
        weights: Optional species weights
        baseline_index: Row position of the baseline strategy in the raw matrix

    Returns:
        ProblemInstance ready for combination and optimization
    """
    rounded, aligned_costs, aligned_weights = prepare(matrix, costs, weights)
    binarized = threshold(rounded, t)
    reduced, reduced_costs, reduced_all_index, record, reduced_weights = extract_baseline(
        binarized, aligned_costs, baseline_index, all_index, aligned_weights
    )
    return ProblemInstance(
        matrix=reduced,
        costs=reduced_costs,
        all_index=reduced_all_index,
        threshold=t,
        baseline=record,
        weights=reduced_weights,
    )
