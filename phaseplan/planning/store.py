# phaseplan/planning/store.py
"""
Plan store: per-target trees of blocks and actions.

Each (phase, target) path owns a TargetPlan, a stack of open blocks whose
bottom entry is the root block. Actions are appended to the innermost open
block; leaving a scope closes that block and attaches it to its parent.

Every operation returns a new value, nothing is modified in place.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Tuple, Union

from ..action import Action
from ..errors import ScopeError


Path = Tuple[str, str]


def target_path(session) -> Path:
    """Locate the plan of the session's current phase and target."""
    return (session.phase, session.target_id)


@dataclass(frozen=True)
class Block:
    """
    A closed group of actions.

    Attributes:
        entries: Actions and nested blocks in registration order
    """
    entries: Tuple[Union[Action, "Block"], ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def actions(self) -> Iterator[Action]:
        """Iterate over all actions, descending into nested blocks."""
        for entry in self.entries:
            if isinstance(entry, Block):
                yield from entry.actions()
            else:
                yield entry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block": [entry.to_dict() for entry in self.entries],
        }


@dataclass(frozen=True)
class TargetPlan:
    """
    The plan tree of one target, with a cursor on the innermost open block.

    Attributes:
        stack: Entries of each open block, root first
    """
    stack: Tuple[Tuple[Union[Action, Block], ...], ...] = ((),)

    @property
    def depth(self) -> int:
        """Number of scopes currently open."""
        return len(self.stack) - 1

    @property
    def current(self) -> Block:
        """Snapshot of the block the cursor points at."""
        return Block(self.stack[-1])

    @property
    def root(self) -> Block:
        """The completed root block. All scopes must have been left."""
        if self.depth:
            raise ScopeError(f"Leaked scope: {self.depth} scope(s) still open")
        return Block(self.stack[0])

    def add_action(self, action: Action) -> "TargetPlan":
        return replace(self, stack=self.stack[:-1] + (self.stack[-1] + (action,),))

    def push_block(self) -> "TargetPlan":
        return replace(self, stack=self.stack + ((),))

    def pop_block(self) -> "TargetPlan":
        if not self.depth:
            raise ScopeError("Cannot leave scope: no scope is open")
        block = Block(self.stack[-1])
        parent = self.stack[-2] + (block,)
        return replace(self, stack=self.stack[:-2] + (parent,))


@dataclass(frozen=True)
class PlanStore:
    """
    Target plans keyed by (phase, target_id).

    Paths are kept in the order they were first used.
    """
    plans: Mapping[Path, TargetPlan] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "plans", MappingProxyType(dict(self.plans)))

    def plan_for(self, path: Path) -> TargetPlan:
        """Get the plan at a path (an empty plan if nothing was scheduled there)."""
        return self.plans.get(path) or TargetPlan()

    def paths(self) -> List[Path]:
        return list(self.plans)

    def update(self, path: Path, fn: Callable[[TargetPlan], TargetPlan]) -> "PlanStore":
        """Return a store with the plan at path replaced by fn(plan)."""
        plans = dict(self.plans)
        plans[path] = fn(self.plan_for(path))
        return PlanStore(plans)

    def add_action(self, path: Path, action: Action) -> "PlanStore":
        return self.update(path, lambda plan: plan.add_action(action))

    def push_block(self, path: Path) -> "PlanStore":
        return self.update(path, TargetPlan.push_block)

    def pop_block(self, path: Path) -> "PlanStore":
        return self.update(path, TargetPlan.pop_block)

    def open_scopes(self) -> Dict[Path, int]:
        """Paths that still have open scopes, with their depth."""
        return {path: plan.depth for path, plan in self.plans.items() if plan.depth}

    def linearize(self, path: Path):
        """Linearize the plan at path into an ordered LinearPlan."""
        from .linearize import linearize_plan

        phase, target_id = path
        return linearize_plan(self.plan_for(path).root, phase=phase, target_id=target_id)
