"""
Strategy Combination for Strategy Portfolio Coverage Optimization.

A benefit matrix may contain strategies that are themselves combinations of
other strategies. E.g. strategy S12 applies S3, S7 and S10 while S13 applies
S6, S9 and S10. Selecting S12 and S13 together must not pay for S10 twice,
so a composite's cost is the sum over the *deduplicated* set of atomic
strategies it applies, never the sum of its members' costs.

Two ways of asking for a composite are supported:
- ComboSpec.merge(): merge two or more existing strategies (S12 + S13),
  optionally stating which atomic strategies each one applies
- ComboSpec.define(): define a new strategy from a set of existing rows,
  with an optional name

combine() appends one row to the matrix (the logical OR of the member rows)
and one entry to the cost vector, and records the composite's atomic set in
the instance so later combinations that reuse it are deduplicated as well.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from config import STRATEGY_SEPARATOR
from logger import get_logger
from preprocessing import ProblemInstance
from validation import ValidationError, validate_strategy_names

# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class ComboSpec:
    """
    A request to add one composite strategy.

    Attributes:
        members: Existing strategy rows whose coverage is OR-combined
        target_name: Name of the new strategy (default: members joined by " + ")
        constituents: Optional member -> atomic strategies it applies; members
            without an entry resolve through the composite registry, or to
            themselves when atomic
        merge_existing: True when merging >= 2 independent existing strategies
    """

    members: tuple[str, ...]
    target_name: Optional[str] = None
    constituents: Mapping[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    merge_existing: bool = False

    def __post_init__(self) -> None:
        members = tuple(self.members)
        object.__setattr__(self, "members", members)

        if not members:
            raise ValidationError("A combination needs at least one member strategy")

        duplicated = sorted({m for m in members if members.count(m) > 1})
        if duplicated:
            raise ValidationError(f"Combination members are repeated: {duplicated}")

        if self.merge_existing and len(members) < 2:
            raise ValidationError(
                f"Merging existing strategies requires at least 2 distinct strategies, "
                f"got: {list(members)}"
            )

        if self.target_name is not None and not str(self.target_name).strip():
            raise ValidationError("Combination target name cannot be empty")

        constituents = {}
        for member, atomic in dict(self.constituents).items():
            if member not in members:
                raise ValidationError(
                    f"Constituents given for '{member}', which is not a member of the combination"
                )
            atomic = tuple(atomic)
            if not atomic:
                raise ValidationError(f"Constituent list for '{member}' is empty")
            constituents[member] = atomic
        object.__setattr__(self, "constituents", MappingProxyType(constituents))

    @classmethod
    def merge(
        cls,
        members: Sequence[str],
        constituents: Optional[Mapping[str, Sequence[str]]] = None,
        target_name: Optional[str] = None,
    ) -> "ComboSpec":
        """Merge two or more existing strategies into one composite."""
        return cls(
            members=tuple(members),
            target_name=target_name,
            constituents={k: tuple(v) for k, v in (constituents or {}).items()},
            merge_existing=True,
        )

    @classmethod
    def define(cls, members: Sequence[str], target_name: Optional[str] = None) -> "ComboSpec":
        """Define a new strategy that applies the given existing strategies."""
        return cls(members=tuple(members), target_name=target_name)

    @classmethod
    def from_named_lists(
        cls,
        input_strategies: Mapping[str, Optional[str]],
        combined_strategies: Mapping[str, Sequence[str]],
    ) -> "ComboSpec":
        """
        Build a ComboSpec from a pair of named lists.

        With two or more input strategies, e.g.
        ``{"strat1": "S12", "strat2": "S13"}`` and
        ``{"strat1": ["S3", "S7", "S10"], "strat2": ["S6", "S9", "S10"]}``,
        the inputs are merged and the lists name what each one applies.
        With a single input (possibly None), a new strategy is defined from
        the union of the combined lists and named after the input.
        """
        if not input_strategies:
            raise ValidationError("input_strategies must be a non-empty named mapping")
        if not combined_strategies:
            raise ValidationError("combined_strategies must be a non-empty named mapping")

        input_names = [name for name in input_strategies.values() if name is not None]

        if len(input_names) > 1:
            constituents = {
                input_strategies[key]: tuple(combined_strategies[key])
                for key in input_strategies
                if key in combined_strategies and input_strategies[key] is not None
            }
            return cls.merge(input_names, constituents)

        members: list[str] = []
        for names in combined_strategies.values():
            for name in names:
                if name not in members:
                    members.append(name)
        return cls.define(members, input_names[0] if input_names else None)

    def resolved_name(self) -> str:
        return self.target_name or STRATEGY_SEPARATOR.join(self.members)


def resolve_atomic(
    members: Iterable[str],
    composites: Mapping[str, Sequence[str]],
    constituents: Optional[Mapping[str, Sequence[str]]] = None,
) -> tuple[str, ...]:
    """
    Resolve strategies to the deduplicated atomic strategies they apply.

    Explicit constituents win over the composite registry; names found in
    neither are atomic. Order is first-seen.
    """
    constituents = constituents or {}
    atomic: dict[str, None] = {}
    for member in members:
        for name in constituents.get(member, (member,)):
            for leaf in composites.get(name, (name,)):
                atomic.setdefault(leaf, None)
    return tuple(atomic)


def combine(instance: ProblemInstance, spec: ComboSpec) -> ProblemInstance:
    """
    Add one composite strategy to a problem instance.

    Args:
        instance: Instance to extend (left unchanged)
        spec: The composite to add

    Returns:
        New instance whose matrix and cost vector have one extra row

    Raises:
        StrategyReferenceError: If a member is not in the matrix or the cost
            vector, or an atomic strategy has no cost
        ValidationError: If the composite name is already taken
    """
    validate_strategy_names(spec.members, instance.matrix.index, "benefit matrix")
    validate_strategy_names(spec.members, instance.costs.index, "cost vector")

    atomic = resolve_atomic(spec.members, instance.composites, spec.constituents)
    validate_strategy_names(atomic, instance.costs.index, "cost vector")

    if spec.target_name is None and not spec.merge_existing:
        logger.warning("No strategy name supplied, setting default name")
    name = spec.resolved_name()

    if name in instance.matrix.index:
        raise ValidationError(
            f"Cannot add composite strategy '{name}': a strategy with that name already exists"
        )

    cost = float(instance.costs[list(atomic)].sum())
    coverage = instance.matrix.loc[list(spec.members)].to_numpy().max(axis=0)

    matrix = pd.DataFrame(
        np.vstack([instance.matrix.to_numpy(), coverage]),
        index=instance.matrix.index.append(pd.Index([name])),
        columns=instance.matrix.columns,
    )
    costs = pd.concat([instance.costs, pd.Series([cost], index=[name])])

    logger.info(
        f"Added composite strategy '{name}' applying {len(atomic)} strategies "
        f"({', '.join(atomic)}) at cost {cost:,.2f}"
    )

    return replace(
        instance,
        matrix=matrix,
        costs=costs,
        composites={**instance.composites, name: atomic},
    )


def apply_combinations(instance: ProblemInstance, specs: Iterable[ComboSpec]) -> ProblemInstance:
    """Apply a sequence of combinations in order."""
    for spec in specs:
        instance = combine(instance, spec)
    return instance
