# phaseplan/precedence.py
"""
Precedence metadata for actions.

Every action carries a mapping from relation key (always_before,
always_after, action_name, ...) to a set of action names. It is the union of
what the action declared when it was defined and the relations active in the
session where it is called.
"""

import logging
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from .action import force_set, freeze_metadata
from .session import Session

logger = logging.getLogger(__name__)


def merge_relations(*maps: Optional[Mapping[str, Any]]) -> Mapping[str, FrozenSet]:
    """
    Union relation maps key by key.

    Keys that appear in only one map pass through as sets.
    """
    merged: Dict[str, FrozenSet] = {}
    for m in maps:
        for key, value in (m or {}).items():
            merged[key] = merged.get(key, frozenset()) | force_set(value)
    return freeze_metadata(merged)


def function_metadata(fn: Callable) -> Mapping[str, Any]:
    """Metadata attached to an action function when it was defined."""
    return getattr(fn, "action_metadata", None) or {}


def action_metadata(session: Session, fn: Callable) -> Mapping[str, FrozenSet]:
    """Compute action metadata from the function's own metadata and the session's precedence."""
    return merge_relations(function_metadata(fn), session.precedence)


def with_precedence(session: Session, relations: Mapping[str, Any], body: Callable) -> Session:
    """
    Run body with extra precedence relations in effect.

    body receives a session whose precedence is the union of the current
    relations and `relations`. The session it returns is handed back with
    the precedence that was active before this call.
    """
    original = session.precedence
    logger.debug(f"Entering precedence scope: {dict(relations or {})}")
    result = body(session.with_precedence_map(merge_relations(original, relations)))
    if not isinstance(result, Session):
        raise TypeError(f"Precedence body must return a session, got {type(result).__name__}")
    return result.with_precedence_map(original)
