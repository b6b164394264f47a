"""
Configuration file for Strategy Portfolio Coverage Optimization.

This module centralizes all configuration settings, constants, and label
conventions used across the preprocessing, combination, optimization and
sweep modules. This ensures consistency and makes it easy to update settings
in one place.
"""


# ============================================================================
# File Paths
# ============================================================================

BENEFITS_FILE_PATH = "data/benefits.csv"
COSTS_FILE_PATH = "data/costs.csv"
OUTPUT_FILE_PATH = "outputs/optimize_range.csv"

# ============================================================================
# Input Column Names
# ============================================================================

# Column holding the per-strategy cost in the cost table
COST_COLUMN = "Cost"

# Column holding the per-species weight in the weights table
WEIGHT_COLUMN = "Weight"

# ============================================================================
# Benefit Matrix Preprocessing
# ============================================================================

# Benefit values are rounded to this many decimals before thresholding
ROUNDING_DIGITS = 2

# Thresholded matrix entries
COVERED = 1
NOT_COVERED = -1

# Row position of the "do nothing" strategy in the raw benefit matrix
BASELINE_INDEX = 0

# Label used for the baseline strategy in results
BASELINE_STRATEGY_NAME = "Baseline"

# Survival thresholds swept when none are supplied
DEFAULT_THRESHOLDS = (50.01, 60.01, 70.01)

# ============================================================================
# Result Formatting
# ============================================================================

# Joins strategy names (in composite names and in result tables)
STRATEGY_SEPARATOR = " + "

# Joins species names in result tables and dedup signatures
SPECIES_SEPARATOR = " | "

# Columns of the sweep output table, in order
OUTPUT_COLUMNS = [
    "total_cost",
    "strategies",
    "species_groups",
    "threshold",
    "number_of_species",
    "budget",
]

# ============================================================================
# Optimization Settings
# ============================================================================

# Suppress Gurobi solver output to console
SUPPRESS_GUROBI_OUTPUT = True

# Fixed seed and thread count so identical models return identical optima
SOLVER_SEED = 0
SOLVER_THREADS = 1

# Solver time limit in seconds (None = no limit)
SOLVER_TIME_LIMIT = None

# Binary variable decision threshold
BINARY_THRESHOLD = 0.5

# ============================================================================
# Display Formatting
# ============================================================================

# Width for console output formatting
DISPLAY_WIDTH = 80

# Number of characters to display for strategy and species lists
NAME_MAX_LENGTH = 70
