# phaseplan/planning/schema.py
"""
Data structures for linearized plans.

A LinearPlan is the ordered list of steps one target will run for one phase.
Aggregated and collected actions appear once, carrying every argument set
they were called with.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

import yaml

from ..action import ACTION_NAME, Action, ActionKind, ExecutionClass, Location, function_name


@dataclass
class PlanStep:
    """
    A single step in a linearized plan.

    Attributes:
        function: The action function to invoke
        arg_sets: Argument tuples; one per merged call, exactly one otherwise
        execution: Execution class of the action
        action_kind: Backend interpretation tag
        location: Where the action takes effect
        metadata: Merged relation metadata of all merged calls
        depth: Scope nesting level (0 = root block)
    """
    function: Callable
    arg_sets: Tuple[Tuple[Any, ...], ...]
    execution: ExecutionClass
    action_kind: ActionKind
    location: Location
    metadata: Mapping[str, FrozenSet] = field(default_factory=dict)
    depth: int = 0

    @classmethod
    def from_action(cls, action: Action, depth: int = 0) -> "PlanStep":
        return cls(
            function=action.function,
            arg_sets=(action.args,),
            execution=action.execution,
            action_kind=action.action_kind,
            location=action.location,
            metadata=dict(action.metadata),
            depth=depth,
        )

    @property
    def action_name(self) -> Optional[str]:
        names = self.metadata.get(ACTION_NAME)
        if not names:
            return None
        return sorted(names, key=str)[0]

    @property
    def merged(self) -> bool:
        return self.execution != ExecutionClass.IN_SEQUENCE

    @property
    def args(self) -> Tuple[Any, ...]:
        """Arguments of an in-sequence step, or all argument sets of a merged one."""
        if self.merged:
            return self.arg_sets
        return self.arg_sets[0]

    def relation(self, key: str) -> FrozenSet:
        return frozenset(self.metadata.get(key, ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_name": self.action_name,
            "function": function_name(self.function),
            "arg_sets": [list(args) for args in self.arg_sets],
            "execution": self.execution.value,
            "action_kind": self.action_kind.value,
            "location": self.location.value,
            "metadata": {k: sorted(v, key=str) for k, v in sorted(self.metadata.items())},
            "depth": self.depth,
        }


@dataclass
class LinearPlan:
    """
    Ordered steps of one target for one phase.

    Attributes:
        phase: Phase identifier
        target_id: Target identifier
        steps: Steps in execution order
    """
    phase: str
    target_id: str
    steps: List[PlanStep] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    def names(self) -> List[Optional[str]]:
        """Action names of the steps, in order."""
        return [step.action_name for step in self.steps]

    def get_step(self, action_name: str) -> Optional[PlanStep]:
        """Get the first step with the given action name."""
        for step in self.steps:
            if step.action_name == action_name:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "target_id": self.target_id,
            "steps": [s.to_dict() for s in self.steps],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_yaml(self) -> str:
        # Round-trip through JSON so arbitrary argument objects become plain data
        return yaml.safe_dump(json.loads(self.to_json()), sort_keys=False)

    def summary(self) -> str:
        """Get a human-readable summary of the plan."""
        lines = [
            f"Plan: {self.phase} on {self.target_id}",
            f"Steps: {len(self.steps)}",
            "",
        ]

        for i, step in enumerate(self.steps):
            indent = "  " * (step.depth + 1)
            name = step.action_name or function_name(step.function)
            calls = f" x{len(step.arg_sets)}" if step.merged else ""
            lines.append(
                f"{indent}{i}. {name} [{step.execution.value}, "
                f"{step.action_kind.value}@{step.location.value}]{calls}"
            )

        return "\n".join(lines)
