"""
Strategy Portfolio Coverage Optimization - Main Entry Point

This repository selects, under a cost budget, the subset of management
strategies that saves the most species, given a strategy x species benefit
matrix and a cost per strategy. Selection is solved as a binary program with
the Gurobi optimizer.

Project Structure:
- config.py: Centralized configuration and constants
- logger.py: Level-filtered logging
- validation.py: Input validation and the ValidationError hierarchy
- preprocessing.py: Rounding, thresholding and baseline extraction
- combination.py: Composite strategies with deduplicated cost
- optimizer_utils.py: Binary program formulation (Gurobi)
- solver.py: Solving and reporting Assignment / Infeasible outcomes
- results.py: Readable results and output tables
- optimize_range.py: Sweep over thresholds and budgets (command line entry point)
- utils.py: CSV loading and result display
"""

from config import DEFAULT_THRESHOLDS, DISPLAY_WIDTH


def main() -> None:
    """
    Main entry point for the Strategy Portfolio Coverage Optimization project.

    Prints an overview. To run a sweep, use optimize_range.py:

    Examples:
        python optimize_range.py --benefits data/benefits.csv --costs data/costs.csv --all-index 14
        python optimize_range.py --all-index 14 --thresholds 60.01 --budgets 5657184
    """
    print("=" * DISPLAY_WIDTH)
    print("Strategy Portfolio Coverage Optimization".center(DISPLAY_WIDTH))
    print("=" * DISPLAY_WIDTH)
    print("\nProject Structure:")
    print("  preprocessing.py   - Round, threshold, bank baseline coverage")
    print("  combination.py     - Composite strategies without double-counted cost")
    print("  optimizer_utils.py - Binary program constraints and objective")
    print("  solver.py          - Gurobi solve, Assignment / Infeasible outcomes")
    print("  results.py         - Readable results and output tables")
    print("  optimize_range.py  - Threshold x budget sweep")

    print("\nRun a sweep:")
    print("   python optimize_range.py --benefits BENEFITS.csv --costs COSTS.csv --all-index N")
    print(f"   Default thresholds: {', '.join(str(t) for t in DEFAULT_THRESHOLDS)}")
    print("   Budgets are generated from the strategy costs unless --budgets is given")

    print("\nEvery solve enforces:")
    print("  - At most one strategy is credited with saving each species")
    print("  - Only selected strategies are credited")
    print("  - The 'apply all strategies' option excludes every other strategy")
    print("  - Total cost of selected strategies stays within the budget")
    print("=" * DISPLAY_WIDTH)


if __name__ == "__main__":
    main()
