# phaseplan/scheduler.py
"""
Action registration and scopes.

schedule_action appends an Action to the plan of the session's current
phase and target. enter_scope/leave_scope bracket a group of actions in a
nested block of that plan.
"""

import logging
import re
from typing import Any, Callable, Mapping, Sequence

from .action import Action, ActionKind, ExecutionClass, Location, function_name
from .errors import PreconditionError
from .planning.store import target_path
from .session import Session

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.:-]*$")


def _check_identifier(kind: str, value: Any) -> None:
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise PreconditionError(f"Session {kind} must be an identifier, got {value!r}")


def check_session(session: Session) -> None:
    """Raise PreconditionError unless the session names a phase and a target."""
    if session is None:
        raise PreconditionError("No session to schedule into")
    _check_identifier("phase", session.phase)
    _check_identifier("target", session.target_id)


def schedule_action(
    session: Session,
    action_fn: Callable,
    metadata: Mapping[str, Any],
    args: Sequence[Any],
    execution: ExecutionClass = ExecutionClass.IN_SEQUENCE,
    action_kind: ActionKind = ActionKind.REMOTE_SCRIPT,
    location: Location = Location.TARGET,
) -> Session:
    """
    Register an action in the plan of the session's phase and target.

    The action is not run: action_fn and args are stored so the plan can
    apply them later.

    Execution classes:
        IN_SEQUENCE: applied in the order it is declared. The default.
        AGGREGATED: every call of action_fn in the block is merged into one
            invocation with all argument sets, run before IN_SEQUENCE actions.
        COLLECTED: merged like AGGREGATED, run after IN_SEQUENCE actions.

    Args:
        session: Session naming the phase and target
        action_fn: Function that performs the action
        metadata: Relation key -> action names (see precedence.action_metadata)
        args: Arguments for action_fn, session excluded
        execution: Execution class
        action_kind: How a backend should interpret the action
        location: Where the action takes effect

    Returns:
        Session with the updated plan store
    """
    check_session(session)
    path = target_path(session)
    action = Action(
        function=action_fn,
        args=tuple(args),
        execution=execution,
        action_kind=action_kind,
        location=location,
        metadata=metadata,
    )
    logger.debug(
        f"Scheduled {action.action_name or function_name(action_fn)} "
        f"({execution.value}) on {path[0]}/{path[1]}"
    )
    return session.with_plan(session.plan.add_action(path, action))


def enter_scope(session: Session) -> Session:
    """Enter a new action scope."""
    check_session(session)
    path = target_path(session)
    logger.debug(f"Entering scope on {path[0]}/{path[1]}")
    return session.with_plan(session.plan.push_block(path))


def leave_scope(session: Session) -> Session:
    """Leave the current action scope."""
    check_session(session)
    path = target_path(session)
    logger.debug(f"Leaving scope on {path[0]}/{path[1]}")
    return session.with_plan(session.plan.pop_block(path))


def scoped(session: Session, body: Callable[[Session], Session]) -> Session:
    """Run body inside a new scope, leaving it once body returns."""
    result = body(enter_scope(session))
    if not isinstance(result, Session):
        raise TypeError(f"Scope body must return a session, got {type(result).__name__}")
    return leave_scope(result)
