# phaseplan - Action scheduling for deployment phases
#
# Phase bodies call action-producing functions. Each call is recorded as an
# Action in a per-target plan instead of being run, and the plan is later
# linearized into the order the target will apply them.
#
# Core concepts:
# - Action: One scheduled call, with its execution class, kind and location
# - Session: Immutable phase/target context threaded through phase bodies
# - Definition: A callable that schedules its body (remote, local, aggregated, collected)
# - Scope: A nested block of actions within a target's plan
# - PlanStore: Per-target block trees and their linearization

from .action import (
    Action,
    ActionKind,
    ExecutionClass,
    Location,
    ACTION_NAME,
    ALWAYS_AFTER,
    ALWAYS_BEFORE,
)
from .errors import (
    PlanError,
    PreconditionError,
    ScopeError,
    DefinitionError,
    PrecedenceCycleError,
)
from .session import Session, ORIGIN_TARGET
from .precedence import action_metadata, merge_relations, with_precedence
from .scheduler import schedule_action, enter_scope, leave_scope, scoped
from .definition import (
    ActionDefinition,
    define_action,
    remote_action,
    local_action,
    aggregated_action,
    collected_action,
    declare,
    declare_remote_action,
    declare_local_action,
    declare_aggregated_action,
    declare_collected_action,
    as_local_action,
    action_fn,
    get_action,
    list_actions,
    clear_actions,
)
from .planning import PlanStore, LinearPlan, PlanStep
from .phase import run_phase, plan_phase

__all__ = [
    # Actions
    "Action",
    "ActionKind",
    "ExecutionClass",
    "Location",
    "ACTION_NAME",
    "ALWAYS_AFTER",
    "ALWAYS_BEFORE",
    # Errors
    "PlanError",
    "PreconditionError",
    "ScopeError",
    "DefinitionError",
    "PrecedenceCycleError",
    # Scheduling
    "Session",
    "ORIGIN_TARGET",
    "action_metadata",
    "merge_relations",
    "with_precedence",
    "schedule_action",
    "enter_scope",
    "leave_scope",
    "scoped",
    # Definitions
    "ActionDefinition",
    "define_action",
    "remote_action",
    "local_action",
    "aggregated_action",
    "collected_action",
    "declare",
    "declare_remote_action",
    "declare_local_action",
    "declare_aggregated_action",
    "declare_collected_action",
    "as_local_action",
    "action_fn",
    "get_action",
    "list_actions",
    "clear_actions",
    # Plans
    "PlanStore",
    "LinearPlan",
    "PlanStep",
    "run_phase",
    "plan_phase",
]

__version__ = "0.1.0"
