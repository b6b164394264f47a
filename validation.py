"""
Input Validation Module for Strategy Portfolio Coverage Optimization.

This module validates benefit matrices, cost vectors, species weights and
optimization parameters so that problems are reported early, with actionable
messages, instead of surfacing deep inside the solver.

Key validation functions:
- validate_benefit_matrix(): Non-empty matrix with unique labels and numeric cells
- validate_cost_vector(): Costs aligned to strategies, non-negative
- validate_species_weights(): Weights aligned to species, non-negative
- validate_strategy_index(): Baseline and "all" indices within range
- validate_threshold() / validate_budget(): Scalar parameters
- validate_strategy_names(): Referenced strategies exist
- validate_output_directory(): Output location is writable
- validate_csv_file(): Input file exists and is a CSV file
"""

from pathlib import Path
from typing import Iterable, List

import numpy as np
import pandas as pd


class ValidationError(Exception):
    """Custom exception for validation failures with actionable messages."""
    pass


class StrategyReferenceError(ValidationError):
    """A strategy name was referenced that is not in the matrix or cost vector."""

    def __init__(self, missing: List[str], where: str):
        self.missing = list(missing)
        self.where = where
        super().__init__(
            f"Unknown strategies referenced: {', '.join(self.missing)}\n"
            f"They were not found in the {where}."
        )


def _has_default_labels(labels: pd.Index) -> bool:
    """True when an axis carries positional (0..n-1) or blank labels."""
    if isinstance(labels, pd.RangeIndex):
        return True
    return bool(labels.isna().any()) or any(str(label).strip() == "" for label in labels)


def missing_label_axes(matrix: pd.DataFrame) -> List[str]:
    """
    Return the names of the matrix axes whose labels look missing.

    Missing labels are not fatal: the optimization still runs, but strategy
    and species names in the results will not be meaningful.
    """
    axes = []
    if _has_default_labels(matrix.index):
        axes.append("strategy")
    if _has_default_labels(matrix.columns):
        axes.append("species")
    return axes


def validate_benefit_matrix(matrix: pd.DataFrame) -> None:
    """
    Validate the structure of a benefit matrix.

    Args:
        matrix: Strategies x species DataFrame

    Raises:
        ValidationError: If the matrix is empty, has duplicate labels or
            non-numeric cells
    """
    if matrix is None or not isinstance(matrix, pd.DataFrame):
        raise ValidationError("Benefit matrix must be a pandas DataFrame")

    if matrix.shape[0] == 0 or matrix.shape[1] == 0:
        raise ValidationError(
            f"Benefit matrix is empty (shape {matrix.shape}).\n"
            f"At least one strategy row and one species column are required."
        )

    duplicated_rows = matrix.index[matrix.index.duplicated()].unique().tolist()
    if duplicated_rows:
        raise ValidationError(
            f"Benefit matrix has duplicate strategy labels: {duplicated_rows}\n"
            f"Strategy names must be unique."
        )

    duplicated_cols = matrix.columns[matrix.columns.duplicated()].unique().tolist()
    if duplicated_cols:
        raise ValidationError(
            f"Benefit matrix has duplicate species labels: {duplicated_cols}\n"
            f"Species names must be unique."
        )

    non_numeric = [col for col in matrix.columns if not pd.api.types.is_numeric_dtype(matrix[col])]
    if non_numeric:
        raise ValidationError(
            f"Benefit matrix columns contain non-numeric values: {non_numeric[:5]}\n"
            f"Please ensure all benefit cells contain only numbers."
        )

    if matrix.isna().any().any():
        bad_rows = matrix.index[matrix.isna().any(axis=1)].tolist()[:5]
        raise ValidationError(
            f"Benefit matrix contains missing values.\n"
            f"First few problematic strategies: {bad_rows}"
        )


def validate_cost_vector(costs: pd.Series, strategies: pd.Index) -> None:
    """
    Validate that a cost vector is keyed exactly by the given strategies.

    Args:
        costs: Cost per strategy, indexed by strategy name
        strategies: Strategy names of the benefit matrix

    Raises:
        ValidationError: If labels do not match or costs are invalid
    """
    missing = [s for s in strategies if s not in costs.index]
    extra = [s for s in costs.index if s not in strategies]
    if missing or extra:
        raise ValidationError(
            f"Cost vector is not aligned with the benefit matrix.\n"
            f"  Strategies without a cost: {missing}\n"
            f"  Costs without a strategy: {extra}"
        )

    if costs.index.duplicated().any():
        raise ValidationError(
            f"Cost vector has duplicate strategy labels: "
            f"{costs.index[costs.index.duplicated()].tolist()}"
        )

    values = pd.to_numeric(costs, errors="coerce")
    if values.isna().any():
        raise ValidationError(
            f"Cost vector contains non-numeric or missing values for: "
            f"{costs.index[values.isna()].tolist()}"
        )

    if (values < 0).any():
        raise ValidationError(
            f"Costs must be non-negative, got negative costs for: "
            f"{costs.index[values < 0].tolist()}"
        )


def validate_species_weights(weights: pd.Series, species: pd.Index) -> None:
    """
    Validate that species weights are aligned with the benefit matrix columns.

    Raises:
        ValidationError: If weights are missing, misaligned or negative
    """
    missing = [s for s in species if s not in weights.index]
    if missing:
        raise ValidationError(
            f"Species weights are missing for: {missing[:5]}\n"
            f"Weights must be supplied for every species in the benefit matrix."
        )

    values = pd.to_numeric(weights, errors="coerce")
    if values.isna().any() or (values < 0).any():
        raise ValidationError("Species weights must be non-negative numbers")


def validate_strategy_index(index: int, n_strategies: int, context: str = "strategy") -> None:
    """
    Validate that a 0-based strategy row position is in range.

    Raises:
        ValidationError: If index is not an integer or out of range
    """
    if isinstance(index, bool) or not isinstance(index, (int, np.integer)):
        raise ValidationError(f"{context} index must be an integer, got: {type(index).__name__}")

    if index < 0 or index >= n_strategies:
        raise ValidationError(
            f"Invalid {context} index: {index}\n"
            f"Indices must be in range [0, {n_strategies - 1}]"
        )


def validate_threshold(threshold: float) -> None:
    """Validate that a survival threshold is a finite number."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float, np.number)):
        raise ValidationError(f"Threshold must be numeric, got: {type(threshold).__name__}")
    if not np.isfinite(threshold):
        raise ValidationError(f"Threshold must be finite, got: {threshold}")


def validate_budget(budget: float) -> None:
    """Validate that a budget is a finite, non-negative number."""
    if isinstance(budget, bool) or not isinstance(budget, (int, float, np.number)):
        raise ValidationError(f"Budget must be numeric, got: {type(budget).__name__}")
    if not np.isfinite(budget) or budget < 0:
        raise ValidationError(f"Budget must be a finite, non-negative number, got: {budget}")


def validate_thresholds(thresholds: Iterable[float]) -> List[float]:
    """
    Validate a list of thresholds for a sweep.

    Returns:
        The thresholds as a list, in the given order
    """
    values = list(thresholds)
    if not values:
        raise ValidationError("At least one threshold is required for a sweep")
    for t in values:
        validate_threshold(t)
    return values


def validate_strategy_names(names: Iterable[str], available: Iterable[str], where: str) -> None:
    """
    Check that every referenced strategy name is available.

    Raises:
        StrategyReferenceError: Naming every missing strategy
    """
    available_set = set(available)
    missing = [name for name in names if name not in available_set]
    if missing:
        raise StrategyReferenceError(missing, where)


def validate_output_directory(directory: Path) -> None:
    """
    Validate and create output directory if needed.

    Raises:
        ValidationError: If directory cannot be created or accessed
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValidationError(
            f"Cannot create output directory: {directory}\n"
            f"Error: {str(e)}\n"
            f"Please check directory permissions."
        ) from e

    if not directory.is_dir():
        raise ValidationError(
            f"Output path exists but is not a directory: {directory}"
        )


def validate_csv_file(file_path: str) -> None:
    """
    Validate that a CSV input file exists.

    Raises:
        ValidationError: If the file doesn't exist or isn't a CSV file
    """
    path = Path(file_path)

    if not path.exists():
        raise ValidationError(
            f"Input file not found: {file_path}\n"
            f"Expected location: {path.absolute()}"
        )

    if not path.is_file():
        raise ValidationError(f"Path exists but is not a file: {file_path}")

    if path.suffix.lower() != ".csv":
        raise ValidationError(
            f"File does not appear to be a CSV file: {file_path}\n"
            f"Expected .csv extension, got: {path.suffix}"
        )
