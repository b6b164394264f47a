"""
Utility functions for Strategy Portfolio Coverage Optimization.

This module provides shared functionality used by the sweep entry point,
including loading the benefit matrix, cost table and species weights from CSV
files, and displaying sweep results.
"""

from typing import Optional

import pandas as pd

from config import (
    COST_COLUMN,
    DISPLAY_WIDTH,
    NAME_MAX_LENGTH,
    WEIGHT_COLUMN,
)
from logger import get_logger
from validation import ValidationError, validate_benefit_matrix, validate_csv_file

# Module logger
logger = get_logger(__name__)


def load_benefit_matrix(file_path: str) -> pd.DataFrame:
    """
    Load a strategies x species benefit matrix from CSV.

    The first column holds strategy labels, the header row species labels.

    Raises:
        ValidationError: If the file is missing or the matrix is malformed
    """
    logger.info(f"Loading benefit matrix from {file_path}...")

    try:
        validate_csv_file(file_path)
    except ValidationError:
        logger.exception("Validation failed")
        raise

    matrix = pd.read_csv(file_path, index_col=0)
    matrix.index = matrix.index.map(lambda label: str(label).strip())
    matrix.columns = matrix.columns.map(lambda label: str(label).strip())
    matrix = matrix.apply(pd.to_numeric, errors="coerce")

    try:
        validate_benefit_matrix(matrix)
    except ValidationError:
        logger.exception("Benefit matrix validation failed")
        raise

    logger.info(f"Loaded {matrix.shape[0]} strategies x {matrix.shape[1]} species")
    return matrix


def _load_named_column(file_path: str, column: str, what: str) -> pd.Series:
    """
    Load one numeric column of a CSV table as a Series.

    The first non-numeric column, if any, labels the entries; otherwise the
    Series keeps a positional index and is aligned by position later.
    """
    try:
        validate_csv_file(file_path)
    except ValidationError:
        logger.exception("Validation failed")
        raise

    table = pd.read_csv(file_path)
    if column not in table.columns:
        raise ValidationError(
            f"{what} file {file_path} has no '{column}' column.\n"
            f"Available columns: {', '.join(str(c) for c in table.columns)}"
        )

    label_columns = [
        c for c in table.columns
        if c != column and not pd.api.types.is_numeric_dtype(table[c])
    ]
    values = pd.to_numeric(table[column], errors="coerce")
    if label_columns:
        values.index = table[label_columns[0]].map(lambda label: str(label).strip())
    values.name = column
    return values


def load_cost_vector(file_path: str) -> pd.Series:
    """Load per-strategy costs from the COST_COLUMN of a CSV file."""
    logger.info(f"Loading strategy costs from {file_path}...")
    costs = _load_named_column(file_path, COST_COLUMN, "Cost")
    logger.info(f"Loaded {len(costs)} strategy costs")
    return costs


def load_species_weights(file_path: str) -> pd.Series:
    """
    Load per-species weights from the WEIGHT_COLUMN of a CSV file.

    Unlabelled weights must be in exactly the same order as the species in
    the benefit matrix.
    """
    logger.info(f"Loading species weights from {file_path}...")
    weights = _load_named_column(file_path, WEIGHT_COLUMN, "Weight")
    logger.info(f"Loaded {len(weights)} species weights")
    return weights


def display_results(table: pd.DataFrame, title: Optional[str] = None) -> None:
    """
    Display a sweep output table in a readable format.

    Args:
        table: Output of SweepResult.to_frame() / results_to_frame()
        title: Optional section title
    """
    logger.section(title or "OPTIMIZATION RESULTS", DISPLAY_WIDTH)

    if table.empty:
        logger.info("  No results to display")
        return

    for threshold, group in table.groupby("threshold", sort=False):
        logger.info(f"{f'Threshold {threshold}':^{DISPLAY_WIDTH}}")
        logger.info("-" * DISPLAY_WIDTH)
        for _, row in group.iterrows():
            logger.info(
                f"  Budget: {row['budget']:>16,.2f}  |  Cost: {row['total_cost']:>16,.2f}  |  "
                f"Species: {row['number_of_species']:>4}"
            )
            logger.info(f"    Strategies: {str(row['strategies'])[:NAME_MAX_LENGTH]}")
            logger.info(f"    Species:    {str(row['species_groups'])[:NAME_MAX_LENGTH]}")

    logger.info("=" * DISPLAY_WIDTH)
    logger.info(f"  Number of distinct outcomes: {len(table):>10}")
