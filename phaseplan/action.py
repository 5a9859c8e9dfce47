# phaseplan/action.py
"""
Action descriptors.

An Action is one occurrence of an action call inside a phase: the function
that will eventually run, the arguments it was called with, and the tags the
plan store needs to place it.

Execution classes:
- AGGREGATED: calls to the same function are merged into one invocation
  that runs before the in-sequence actions of its block.
- IN_SEQUENCE: runs in the order it was declared.
- COLLECTED: merged like AGGREGATED, but runs after the in-sequence actions.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Tuple

ACTION_NAME = "action_name"
ALWAYS_BEFORE = "always_before"
ALWAYS_AFTER = "always_after"


class ExecutionClass(Enum):
    """Scheduling bucket of an action within its block."""
    AGGREGATED = "aggregated"
    IN_SEQUENCE = "in-sequence"
    COLLECTED = "collected"


class ActionKind(Enum):
    """How a backend interprets the action. Opaque to scheduling."""
    REMOTE_SCRIPT = "remote-script"                # script run on the target
    LOCAL_FUNCTION = "local-function"              # python callable run on the origin
    TRANSFER_TO_TARGET = "transfer-to-target"      # local source, remote destination
    TRANSFER_FROM_TARGET = "transfer-from-target"  # remote source, local destination


class Location(Enum):
    """Where the effect of an action is realized."""
    ORIGIN = "origin"
    TARGET = "target"


def force_set(value: Any) -> FrozenSet:
    """Treat None as empty, a collection as its elements and anything else as a one-element set."""
    if value is None:
        return frozenset()
    if isinstance(value, (set, frozenset, list, tuple)):
        return frozenset(value)
    return frozenset([value])


def freeze_metadata(metadata: Optional[Mapping[str, Any]]) -> Mapping[str, FrozenSet]:
    """Return a read-only copy of metadata with every value as a frozenset."""
    return MappingProxyType({key: force_set(value) for key, value in (metadata or {}).items()})


def function_name(fn: Callable) -> str:
    """Human-readable name of an action function."""
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


@dataclass(frozen=True)
class Action:
    """
    A single scheduled action.

    Attributes:
        function: The callable that performs the action (opaque here)
        args: Arguments the action was called with, session excluded
        execution: Execution class
        action_kind: Backend interpretation tag
        location: Where the action takes effect
        metadata: Relation key -> set of action names
    """
    function: Callable
    args: Tuple[Any, ...] = ()
    execution: ExecutionClass = ExecutionClass.IN_SEQUENCE
    action_kind: ActionKind = ActionKind.REMOTE_SCRIPT
    location: Location = Location.TARGET
    metadata: Mapping[str, FrozenSet] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        """Normalise args and metadata into immutable containers."""
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "metadata", freeze_metadata(self.metadata))

    @property
    def action_name(self) -> Optional[str]:
        """Declared name of the action, or None for anonymous actions."""
        names = self.metadata.get(ACTION_NAME)
        if not names:
            return None
        return sorted(names, key=str)[0]

    @property
    def aggregates(self) -> bool:
        """True if calls to this action's function are merged."""
        return self.execution in (ExecutionClass.AGGREGATED, ExecutionClass.COLLECTED)

    def same_action(self, other: "Action") -> bool:
        """True if both descriptors come from the same action function."""
        return self.function is other.function

    def to_dict(self) -> Dict[str, Any]:
        """Serialize action to dictionary."""
        return {
            "action_name": self.action_name,
            "function": function_name(self.function),
            "args": list(self.args),
            "execution": self.execution.value,
            "action_kind": self.action_kind.value,
            "location": self.location.value,
            "metadata": {k: sorted(v, key=str) for k, v in sorted(self.metadata.items())},
        }
