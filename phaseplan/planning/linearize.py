# phaseplan/planning/linearize.py
"""
Linearization of a target's block tree into an ordered list of steps.

Within each block:
1. Aggregated and collected calls to the same function are merged into one
   step at the position of their first call.
2. Steps are ordered aggregated, then in-sequence (nested blocks count as a
   single in-sequence entry), then collected.
3. Precedence relations reorder steps of the same block: a step with
   always_before {n} runs before every step named n, a step with
   always_after {n} runs after every step named n. Unknown names are
   ignored.
4. Otherwise the order of step 2 is kept: a step only moves ahead of an
   earlier one when a relation requires it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Set, Tuple

from ..action import ALWAYS_AFTER, ALWAYS_BEFORE, Action, ExecutionClass
from ..errors import PrecedenceCycleError
from .schema import LinearPlan, PlanStep
from .store import Block

logger = logging.getLogger(__name__)


@dataclass
class _Unit:
    """A run of steps that moves as one during ordering."""
    steps: List[PlanStep]
    names: FrozenSet[str] = frozenset()
    before: FrozenSet[str] = frozenset()
    after: FrozenSet[str] = frozenset()

    @classmethod
    def for_step(cls, step: PlanStep) -> "_Unit":
        return cls(
            steps=[step],
            names=frozenset([step.action_name]) if step.action_name else frozenset(),
            before=step.relation(ALWAYS_BEFORE),
            after=step.relation(ALWAYS_AFTER),
        )

    def label(self) -> str:
        if self.names:
            return ",".join(sorted(self.names))
        return "<block>" if len(self.steps) != 1 else "<anonymous>"


def _merge_into(step: PlanStep, action: Action) -> None:
    """Fold another call of the same action into an existing step."""
    step.arg_sets = step.arg_sets + (action.args,)
    metadata = dict(step.metadata)
    for key, values in action.metadata.items():
        metadata[key] = frozenset(metadata.get(key, frozenset())) | values
    step.metadata = metadata


def _precedence_order(units: List[_Unit]) -> List[_Unit]:
    """
    Order units so every precedence relation holds, otherwise keeping their order.

    Each unit is emitted after the units it must follow, which are pulled
    forward from later positions when needed.

    Raises PrecedenceCycleError if the relations cannot be satisfied.
    """
    by_name: Dict[str, List[int]] = {}
    for i, unit in enumerate(units):
        for name in unit.names:
            by_name.setdefault(name, []).append(i)

    # predecessors[j] holds the units that must run before unit j
    predecessors: Dict[int, Set[int]] = {i: set() for i in range(len(units))}
    for i, unit in enumerate(units):
        for name in unit.before:
            for j in by_name.get(name, ()):
                if j != i:
                    predecessors[j].add(i)
        for name in unit.after:
            for j in by_name.get(name, ()):
                if j != i:
                    predecessors[i].add(j)

    order: List[int] = []
    done: Set[int] = set()
    trail: List[int] = []

    def visit(i: int):
        if i in done:
            return
        if i in trail:
            cycle = [units[j].label() for j in trail[trail.index(i):]]
            raise PrecedenceCycleError(
                f"Precedence cycle between actions: {' -> '.join(cycle)}", names=cycle
            )
        trail.append(i)
        for j in sorted(predecessors[i]):
            visit(j)
        trail.pop()
        done.add(i)
        order.append(i)

    for i in range(len(units)):
        visit(i)

    return [units[i] for i in order]


def linearize_block(block: Block, depth: int = 0) -> List[PlanStep]:
    """Linearize a block (and its nested blocks) into ordered steps."""
    aggregated: List[PlanStep] = []
    in_sequence: List[_Unit] = []
    collected: List[PlanStep] = []
    merged: Dict[Tuple[ExecutionClass, int], PlanStep] = {}

    for entry in block.entries:
        if isinstance(entry, Block):
            in_sequence.append(_Unit(steps=linearize_block(entry, depth + 1)))
            continue

        if not entry.aggregates:
            in_sequence.append(_Unit.for_step(PlanStep.from_action(entry, depth)))
            continue

        key = (entry.execution, id(entry.function))
        if key in merged:
            _merge_into(merged[key], entry)
            continue

        step = PlanStep.from_action(entry, depth)
        merged[key] = step
        if entry.execution == ExecutionClass.AGGREGATED:
            aggregated.append(step)
        else:
            collected.append(step)

    # Relations of merged steps are only final after every call is folded in
    units = (
        [_Unit.for_step(step) for step in aggregated]
        + in_sequence
        + [_Unit.for_step(step) for step in collected]
    )

    steps: List[PlanStep] = []
    for unit in _precedence_order(units):
        steps.extend(unit.steps)
    return steps


def linearize_plan(root: Block, phase: str, target_id: str) -> LinearPlan:
    """Linearize a completed root block into a LinearPlan."""
    steps = linearize_block(root)
    logger.info(f"Linearized {phase}/{target_id}: {len(steps)} steps")
    return LinearPlan(phase=phase, target_id=target_id, steps=steps)
