#!/usr/bin/env python3
"""
phaseplan CLI

Command-line interface for inspecting the plans phases produce:
  phaseplan plan - Schedule a phase body and print each target's plan
  phaseplan actions - List the actions a module declares

Usage:
  phaseplan plan <module:callable> [--phase <id>] [-t <target> ...] [--config <file>] [--format text|json|yaml]
  phaseplan actions <module>
"""

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import yaml

from .config import FORMATS, PlanConfig
from .definition import list_actions
from .errors import PlanError
from .phase import plan_phase

def load_callable(reference: str) -> Callable:
    """
    Import a phase body from module:callable.

    Returns the callable named by reference.
    """
    if ":" not in reference:
        raise ValueError(f"Invalid phase body: {reference}. Expected module:callable")

    module_name, attr = reference.split(":", 1)
    module = importlib.import_module(module_name)
    target = module
    for part in attr.split("."):
        target = getattr(target, part)
    if not callable(target):
        raise ValueError(f"{reference} is not callable")
    return target


def render_plans(plans, fmt: str) -> str:
    """Render linearized plans as text, JSON or YAML."""
    if fmt == "json":
        return json.dumps([json.loads(p.to_json()) for p in plans.values()], indent=2)
    if fmt == "yaml":
        return yaml.safe_dump_all([yaml.safe_load(p.to_yaml()) for p in plans.values()], sort_keys=False)
    return "\n\n".join(p.summary() for p in plans.values())


def cmd_plan(args) -> int:
    """Schedule a phase and print the plans."""
    try:
        config = PlanConfig.from_file(Path(args.config)) if args.config else PlanConfig()
        body = load_callable(args.body)
    except (PlanError, ImportError, AttributeError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.phase:
        config.phase = args.phase
    if args.target:
        config.targets = list(args.target)
    fmt = args.format or config.format

    try:
        plans = plan_phase(config.phase, config.targets, body, precedence=config.precedence)
    except PlanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output = render_plans(plans, fmt)
    if args.output:
        with open(args.output, "w") as f:
            f.write(output)
        print(f"Plan saved to: {args.output}")
    else:
        print(output)
    return 0


def cmd_actions(args) -> int:
    """List actions declared by a module."""
    try:
        module = importlib.import_module(args.module)
    except (PlanError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    actions = {
        name: definition for name, definition in list_actions().items()
        if getattr(definition.body, "__module__", None) == module.__name__
    }
    if not actions:
        print("No actions declared")
        return 0

    for name in sorted(actions):
        definition = actions[name]
        print(
            f"{name}: {definition.execution.value} "
            f"{definition.action_kind.value}@{definition.location.value} "
            f"({', '.join(definition.arg_names)})"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="phaseplan",
        description="phaseplan - Action scheduling for deployment phases",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # plan command
    plan_parser = subparsers.add_parser("plan", help="Schedule a phase and print its plans")
    plan_parser.add_argument("body", help="Phase body: module:callable")
    plan_parser.add_argument("--phase", help="Phase identifier (default: configure)")
    plan_parser.add_argument("-t", "--target", action="append",
                             help="Target identifier (repeatable, default: origin)")
    plan_parser.add_argument("--config", help="Plan configuration YAML file")
    plan_parser.add_argument("--format", choices=FORMATS, help="Output format (default: text)")
    plan_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    # actions command
    actions_parser = subparsers.add_parser("actions", help="List actions declared by a module")
    actions_parser.add_argument("module", help="Module to import")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "plan":
        return cmd_plan(args)
    elif args.command == "actions":
        return cmd_actions(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
