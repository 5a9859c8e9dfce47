# phaseplan/definition.py
"""
Action definitions.

define_action turns a body of logic into an action-producing callable:
calling it with a session and arguments schedules the body in the plan
instead of running it.

The four presets fix the execution class, action kind and location:

    @remote_action
    def install_package(session, name):
        return f"apt-get install -y {name}"

    @aggregated_action(name="package-source", metadata={"always_before": "install-package"})
    def package_source(session, url):
        ...

    session = install_package(session, "nginx")

Named definitions are recorded in a registry so they can be looked up and
listed. A definition's identity is its action_fn, which is distinct for
every definition and shared by all calls of it.
"""

import functools
import inspect
import logging
import re
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .action import ACTION_NAME, ActionKind, ExecutionClass, Location
from .errors import DefinitionError
from .precedence import action_metadata
from .scheduler import schedule_action
from .session import Session

logger = logging.getLogger(__name__)

_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.:-]*$")

# Named action definitions
_ACTIONS: Dict[str, "ActionDefinition"] = {}


def _signature(body: Callable) -> Optional[inspect.Signature]:
    try:
        return inspect.signature(body)
    except (TypeError, ValueError):
        # Some builtins expose no signature
        return None


def _check_args(args: Any) -> Tuple[str, ...]:
    if args is None:
        raise DefinitionError("Action definition is missing its argument list")
    if isinstance(args, str) or not isinstance(args, Sequence):
        raise DefinitionError(f"Action arguments must be a list of names, got {args!r}")
    for arg in args:
        if not isinstance(arg, str) or not arg.isidentifier():
            raise DefinitionError(f"Invalid action argument name: {arg!r}")
    return tuple(args)


def _bind_body(body: Callable) -> Callable:
    """Fresh function running body, so every definition has its own identity."""
    @functools.wraps(body)
    def action_fn(session, *args):
        return body(session, *args)
    return action_fn


class ActionDefinition:
    """
    A callable that schedules its body as an action.

    Attributes:
        name: Declared action name (None for anonymous actions)
        execution: Execution class baked in at definition time
        action_kind: Backend interpretation tag
        location: Where the action takes effect
        metadata: Metadata attached to action_fn, including action_name
        action_fn: Function the plan will run for this action
        arg_names: Names of the arguments after the session
    """

    def __init__(
        self,
        body: Callable,
        execution: ExecutionClass,
        action_kind: ActionKind,
        location: Location,
        name: Optional[str] = None,
        doc: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        arg_names: Optional[Sequence[str]] = None,
    ):
        if not callable(body):
            raise DefinitionError(f"Action body must be callable, got {body!r}")
        if name is not None and (not isinstance(name, str) or not _NAME.match(name)):
            raise DefinitionError(f"Invalid action name: {name!r}")
        if metadata is not None and not isinstance(metadata, Mapping):
            raise DefinitionError(f"Action metadata must be a mapping, got {metadata!r}")

        self._signature = _signature(body)
        if arg_names is not None:
            arg_names = _check_args(arg_names)
            if self._signature is not None:
                try:
                    self._signature.bind(None, *arg_names)
                except TypeError as e:
                    raise DefinitionError(
                        f"Body of action {name or body!r} cannot take (session, {', '.join(arg_names)}): {e}"
                    ) from e
        elif self._signature is not None:
            arg_names = tuple(list(self._signature.parameters)[1:])
        else:
            arg_names = ()

        self.body = body
        self.execution = execution
        self.action_kind = action_kind
        self.location = location
        self.name = name
        self.arg_names = arg_names
        self.doc = doc if doc is not None else inspect.getdoc(body)
        self.__doc__ = self.doc

        merged = {ACTION_NAME: name} if name else {}
        merged.update(metadata or {})
        self.metadata = MappingProxyType(merged)

        self.action_fn = _bind_body(body)
        self.action_fn.action_metadata = self.metadata

    def __call__(self, session: Session, *args) -> Session:
        """Schedule this action with the given arguments."""
        if self._signature is not None:
            self._signature.bind(session, *args)
        return schedule_action(
            session,
            self.action_fn,
            action_metadata(session, self.action_fn),
            args,
            self.execution,
            self.action_kind,
            self.location,
        )

    def __repr__(self) -> str:
        return (
            f"<ActionDefinition {self.name or '<anonymous>'} "
            f"{self.execution.value} {self.action_kind.value}@{self.location.value}>"
        )


def define_action(
    execution: ExecutionClass,
    action_kind: ActionKind,
    location: Location,
    body: Callable,
    name: Optional[str] = None,
    doc: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
    arg_names: Optional[Sequence[str]] = None,
) -> ActionDefinition:
    """
    Define an action.

    Args:
        execution: Execution class of every call
        action_kind: How a backend interprets the action
        location: Where the action takes effect
        body: Callable taking (session, *args)
        name: Action name; identifies the action in precedence relations
        doc: Documentation string (defaults to the body's docstring)
        metadata: Extra metadata, merged over {"action_name": name}
        arg_names: Declared argument names, checked against body's signature

    Returns:
        ActionDefinition; calling it schedules the action
    """
    definition = ActionDefinition(
        body, execution, action_kind, location,
        name=name, doc=doc, metadata=metadata, arg_names=arg_names,
    )
    if name is not None:
        register_action(definition)
    return definition


def _preset(execution: ExecutionClass, action_kind: ActionKind, location: Location, summary: str):
    """Build a definer with fixed execution class, kind and location."""
    def definer(
        body: Optional[Callable] = None,
        *,
        name: Optional[str] = None,
        doc: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        args: Optional[Sequence[str]] = None,
    ):
        def wrap(fn: Callable) -> ActionDefinition:
            action_name = name
            if action_name is None:
                default = getattr(fn, "__name__", "")
                action_name = default if _NAME.match(default) else None
            return define_action(
                execution, action_kind, location, fn,
                name=action_name, doc=doc, metadata=metadata, arg_names=args,
            )

        if body is None:
            return wrap
        return wrap(body)

    definer.execution = execution
    definer.action_kind = action_kind
    definer.location = location
    definer.__doc__ = summary
    return definer


remote_action = _preset(
    ExecutionClass.IN_SEQUENCE, ActionKind.REMOTE_SCRIPT, Location.TARGET,
    "Define a remotely executed script action, run in declaration order.",
)
local_action = _preset(
    ExecutionClass.IN_SEQUENCE, ActionKind.LOCAL_FUNCTION, Location.ORIGIN,
    "Define a python function action executed on the origin.",
)
aggregated_action = _preset(
    ExecutionClass.AGGREGATED, ActionKind.REMOTE_SCRIPT, Location.TARGET,
    "Define a remotely executed aggregated action, run before in-sequence actions.",
)
collected_action = _preset(
    ExecutionClass.COLLECTED, ActionKind.REMOTE_SCRIPT, Location.TARGET,
    "Define a remotely executed collected action, run after in-sequence actions.",
)


def declare(preset: Callable, name: str, args: Sequence[str], *rest, doc: Optional[str] = None) -> ActionDefinition:
    """
    Declare a named action with a preset.

    Accepts (name, args, body) and (name, args, metadata, body).
    """
    if len(rest) == 1:
        metadata, body = None, rest[0]
    elif len(rest) == 2:
        metadata, body = rest
        if not isinstance(metadata, Mapping):
            raise DefinitionError(f"Action metadata must be a mapping, got {metadata!r}")
    else:
        raise DefinitionError(
            f"Declaration of {name!r} takes (name, args, body) or (name, args, metadata, body)"
        )
    if not isinstance(name, str) or not _NAME.match(name):
        raise DefinitionError(f"Invalid action name: {name!r}")
    args = _check_args(args)
    return preset(body, name=name, doc=doc, metadata=metadata, args=args)


declare_remote_action = functools.partial(declare, remote_action)
declare_local_action = functools.partial(declare, local_action)
declare_aggregated_action = functools.partial(declare, aggregated_action)
declare_collected_action = functools.partial(declare, collected_action)


def as_local_action(fn: Callable, name: Optional[str] = None) -> ActionDefinition:
    """Adapt an ordinary function taking (session, *args) into a local action."""
    return local_action(fn, name=name)


def action_fn(action: Any) -> Optional[Callable]:
    """Retrieve the function that is used to execute the specified action."""
    return getattr(action, "action_fn", None)


def register_action(definition: ActionDefinition) -> ActionDefinition:
    """Record a named definition in the registry."""
    if definition.name in _ACTIONS:
        logger.warning(f"Overwriting action definition {definition.name}")
    _ACTIONS[definition.name] = definition
    logger.debug(f"Defined action {definition!r}")
    return definition


def get_action(name: str) -> Optional[ActionDefinition]:
    """Get a named definition, or None if none is registered."""
    return _ACTIONS.get(name)


def list_actions() -> Dict[str, ActionDefinition]:
    """List all named definitions."""
    return dict(_ACTIONS)


def clear_actions():
    """Clear all registered definitions (for testing)."""
    _ACTIONS.clear()
