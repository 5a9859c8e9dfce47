# phaseplan/phase.py
"""
Running a phase body against targets.

A phase body is any callable taking a Session and returning the Session
produced by the actions it scheduled. It is called once per target, each
call with its own session, all feeding the same plan store.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .errors import ScopeError
from .planning.schema import LinearPlan
from .planning.store import PlanStore
from .session import Session

logger = logging.getLogger(__name__)

PhaseBody = Callable[[Session], Session]


def run_phase(
    phase: str,
    targets: Iterable[str],
    body: PhaseBody,
    plan: Optional[PlanStore] = None,
    precedence: Optional[Mapping[str, Any]] = None,
) -> PlanStore:
    """
    Schedule a phase for each target.

    Args:
        phase: Phase identifier
        targets: Target identifiers, scheduled in order (a single
            identifier may be given as a string)
        body: Phase body
        plan: Store to add to (a new one if omitted)
        precedence: Precedence relations applied to every action

    Returns:
        The plan store holding every target's plan

    Raises:
        ScopeError: if the body left a scope open
    """
    if isinstance(targets, str):
        targets = [targets]
    plan = plan if plan is not None else PlanStore()
    logger.info(f"Scheduling phase {phase}")

    for target_id in targets:
        session = Session(phase=phase, target_id=target_id, plan=plan, precedence=precedence or {})
        result = body(session)
        if not isinstance(result, Session):
            raise TypeError(f"Phase body must return a session, got {type(result).__name__}")

        leaked = result.plan.open_scopes()
        if leaked:
            details = ", ".join(f"{p}/{t} ({depth})" for (p, t), depth in leaked.items())
            raise ScopeError(f"Leaked scope at end of phase {phase}: {details}")

        plan = result.plan
        logger.debug(f"Scheduled phase {phase} on {target_id}")

    return plan


def plan_phase(
    phase: str,
    targets: Iterable[str],
    body: PhaseBody,
    plan: Optional[PlanStore] = None,
    precedence: Optional[Mapping[str, Any]] = None,
) -> Dict[str, LinearPlan]:
    """Schedule a phase and linearize each target's plan, keyed by target id."""
    targets = [targets] if isinstance(targets, str) else list(targets)
    store = run_phase(phase, targets, body, plan=plan, precedence=precedence)
    return {target_id: store.linearize((phase, target_id)) for target_id in targets}
