# phaseplan/errors.py
"""
Errors raised while scheduling actions.

All of these are fatal for the current scheduling pass: the library never
catches them, they propagate to whoever ran the phase.
"""


class PlanError(Exception):
    """Base class for scheduling failures."""


class PreconditionError(PlanError, ValueError):
    """A session without a usable phase or target was used to schedule an action."""


class ScopeError(PlanError, RuntimeError):
    """Scopes were left unbalanced (popped past the root, or left open)."""


class DefinitionError(PlanError, TypeError):
    """An action definition is malformed."""


class PrecedenceCycleError(PlanError, ValueError):
    """Precedence relations between actions cannot all be satisfied."""

    def __init__(self, message: str, names=None):
        super().__init__(message)
        self.names = list(names or [])
