# phaseplan/session.py
"""
The session value threaded through phase bodies.

A Session names the active phase and target, carries the plan store that
actions are appended to, and the ambient precedence relations. It is never
mutated: every scheduling call returns a new Session.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from .action import freeze_metadata
from .planning.store import PlanStore

ORIGIN_TARGET = "origin"


@dataclass(frozen=True)
class Session:
    """
    Phase/target context for scheduling.

    Attributes:
        phase: Identifier of the active phase
        target_id: Identifier of the active target ("origin" for origin-only work)
        plan: Plan store receiving scheduled actions
        precedence: Relation key -> set of action names applied to every action
    """
    phase: Optional[str] = None
    target_id: Optional[str] = None
    plan: PlanStore = field(default_factory=PlanStore)
    precedence: Mapping[str, FrozenSet] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        object.__setattr__(self, "precedence", freeze_metadata(self.precedence))

    def with_plan(self, plan: PlanStore) -> "Session":
        return replace(self, plan=plan)

    def with_precedence_map(self, precedence: Mapping) -> "Session":
        return replace(self, precedence=precedence)

    def for_target(self, target_id: str, phase: Optional[str] = None) -> "Session":
        """Session for another target, sharing this session's plan store."""
        return replace(self, target_id=target_id, phase=phase or self.phase)
