"""
Optimization Model Builders for Strategy Portfolio Coverage Optimization.

This module builds the binary program for one (instance, budget) pair. Each
constraint family has its own builder so the formulation reads the same way
it is written down:

    maximize    sum_i sum_j w[j] * B[i,j] * X[i,j]

    subject to  sum_i X[i,j] <= 1            for every species j
                X[i,j] <= y[i]               for every strategy i, species j
                y[a] + y[i] <= 1             for every strategy i != a
                sum_i c[i] * y[i] <= K

    X[i,j] = 1 credits strategy i with saving species j, y[i] = 1 selects
    strategy i, a is the "apply all strategies" sentinel and K the budget.

Key functions:
- add_single_credit_constraints(): At most one strategy credited per species
- add_selection_link_constraints(): Only selected strategies are credited
- add_all_strategy_exclusion(): The sentinel excludes every other strategy
- add_budget_constraint(): Total cost of selected strategies within budget
- set_coverage_objective(): Weighted coverage objective
- build_coverage_model(): All of the above for one instance
"""

from typing import Any, Optional, Protocol

from gurobipy import GRB, GurobiError, Model, quicksum
import numpy as np

from config import SUPPRESS_GUROBI_OUTPUT
from logger import get_logger
from preprocessing import ProblemInstance

# Module logger
logger = get_logger(__name__)


class SupportsDebug(Protocol):
    """Protocol for objects that support debug logging."""

    def debug(self, message: str) -> None: ...


class CoverageModel:
    """Wrapper around the binary program and its decision variables."""

    def __init__(
        self,
        model: Model,
        X: Any,  # Gurobi tupledict[(int, int), Var]
        y: Any,  # Gurobi tupledict[int, Var]
        instance: ProblemInstance,
        budget: float,
    ):
        self.model = model
        self.X = X
        self.y = y
        self.instance = instance
        self.budget = budget

    @property
    def n_strategies(self) -> int:
        return self.instance.n_strategies

    @property
    def n_species(self) -> int:
        return self.instance.n_species

    def dispose(self) -> None:
        """Free the solver-side model."""
        self.model.dispose()


def add_single_credit_constraints(
    model: Model,
    X: Any,  # Gurobi tupledict[(int, int), Var]
    n: int,
    m: int,
    logger: SupportsDebug | None = None,
) -> int:
    """
    Allow at most one strategy to be credited for each species.

    Without this, two selected strategies that both save a species would
    count it twice.

    Returns:
        Number of constraints added
    """
    for j in range(m):
        model.addConstr(quicksum(X[i, j] for i in range(n)) <= 1, name=f"SingleCredit_{j}")

    if logger and m > 0:
        logger.debug(f"Added {m} single-credit constraints")

    return m


def add_selection_link_constraints(
    model: Model,
    X: Any,  # Gurobi tupledict[(int, int), Var]
    y: Any,  # Gurobi tupledict[int, Var]
    n: int,
    m: int,
    logger: SupportsDebug | None = None,
) -> int:
    """
    Force the contribution of strategy i to every species to zero unless i is selected.

    Returns:
        Number of constraints added
    """
    for i in range(n):
        for j in range(m):
            model.addConstr(X[i, j] <= y[i], name=f"SelectionLink_{i}_{j}")

    if logger and n * m > 0:
        logger.debug(f"Added {n * m} selection link constraints")

    return n * m


def add_all_strategy_exclusion(
    model: Model,
    y: Any,  # Gurobi tupledict[int, Var]
    all_index: Optional[int],
    n: int,
    logger: SupportsDebug | None = None,
) -> int:
    """
    Make the "apply all strategies" sentinel mutually exclusive with every other strategy.

    If the sentinel is selected, every other strategy must be deselected:
    y[all] + y[i] <= 1 for all i != all.

    Returns:
        Number of constraints added (0 when there is no sentinel)
    """
    if all_index is None:
        return 0

    count = 0
    for i in range(n):
        if i == all_index:
            continue
        model.addConstr(y[all_index] + y[i] <= 1, name=f"AllExcludes_{i}")
        count += 1

    if logger and count > 0:
        logger.debug(f"Added {count} all-strategy exclusion constraints (sentinel row {all_index})")

    return count


def add_budget_constraint(
    model: Model,
    y: Any,  # Gurobi tupledict[int, Var]
    costs: Any,  # ArrayLike
    budget: float,
    n: int,
    logger: SupportsDebug | None = None,
) -> None:
    """
    Keep the total cost of the selected strategies within the budget.

    Args:
        model: Gurobi model to add the constraint to
        y: Strategy selection variables
        costs: Cost of each strategy, by row position
        budget: Maximum total cost
        n: Number of strategies
        logger: Optional logger for progress messages
    """
    model.addConstr(quicksum(costs[i] * y[i] for i in range(n)) <= budget, name="Budget")

    if logger:
        logger.debug(f"Added budget constraint: <= {budget:,.2f}")


def set_coverage_objective(
    model: Model,
    X: Any,  # Gurobi tupledict[(int, int), Var]
    benefits: np.ndarray,
    weights: np.ndarray,
    n: int,
    m: int,
) -> None:
    """
    Maximize the weighted coverage score of the credited (strategy, species) pairs.

    Uncovered species carry a -1 benefit, so crediting them only lowers the
    objective.
    """
    model.setObjective(
        quicksum(weights[j] * benefits[i, j] * X[i, j] for i in range(n) for j in range(m)),
        GRB.MAXIMIZE,
    )


def build_coverage_model(instance: ProblemInstance, budget: float) -> CoverageModel:
    """
    Build the complete binary program for one instance and budget.

    Args:
        instance: Preprocessed (and possibly combined) problem instance
        budget: Maximum total cost of selected strategies

    Returns:
        CoverageModel holding the Gurobi model and its variables

    Raises:
        GurobiError: If the Gurobi model cannot be created
    """
    n = instance.n_strategies
    m = instance.n_species
    benefits = instance.matrix.to_numpy(dtype=float)
    costs = instance.costs.to_numpy(dtype=float)
    weights = instance.species_weights()

    try:
        model = Model(f"Coverage_t{instance.threshold}_K{budget}")
    except GurobiError:
        logger.exception(
            "Failed to create Gurobi model. Please ensure Gurobi license is installed and valid."
        )
        raise
    if SUPPRESS_GUROBI_OUTPUT:
        model.setParam("OutputFlag", 0)

    # Decision variables
    X = model.addVars(n, m, vtype=GRB.BINARY, name="X")
    y = model.addVars(n, vtype=GRB.BINARY, name="y")

    set_coverage_objective(model, X, benefits, weights, n, m)

    add_single_credit_constraints(model, X, n, m, logger=logger)
    add_selection_link_constraints(model, X, y, n, m, logger=logger)
    add_all_strategy_exclusion(model, y, instance.all_index, n, logger=logger)
    add_budget_constraint(model, y, costs, budget, n, logger=logger)

    return CoverageModel(model, X, y, instance, budget)
