# phaseplan/planning - Plan storage and linearization
#
# The store keeps one block tree per (phase, target) path; linearization
# turns a completed tree into the ordered steps a target will run:
# 1. MERGE - fold aggregated/collected calls of the same action together
# 2. ORDER - aggregated, then in-sequence, then collected
# 3. PRECEDENCE - apply always_before/always_after relations

from .schema import PlanStep, LinearPlan
from .store import Block, TargetPlan, PlanStore, target_path
from .linearize import linearize_block, linearize_plan

__all__ = [
    "PlanStep",
    "LinearPlan",
    "Block",
    "TargetPlan",
    "PlanStore",
    "target_path",
    "linearize_block",
    "linearize_plan",
]
