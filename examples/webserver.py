#!/usr/bin/env python3
"""
Plan a small web server phase locally.

Shows aggregated package installs being merged and hoisted, a scoped block,
and precedence relations, without touching any node.

Run directly, or through the CLI:
    PYTHONPATH=examples phaseplan plan webserver:configure -t web1 -t web2
"""

import sys
from pathlib import Path

# Add phaseplan to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from phaseplan import (
    aggregated_action,
    collected_action,
    declare_remote_action,
    local_action,
    plan_phase,
    remote_action,
    scoped,
    with_precedence,
)


@aggregated_action
def package(session, name):
    return f"apt-get install -y {name}"


@remote_action
def config_file(session, path, content):
    return f"cat > {path} <<'EOF'\n{content}\nEOF"


service = declare_remote_action(
    "service", ["name", "action"], {"always_after": "config_file"},
    lambda session, name, action: f"systemctl {action} {name}",
)


@collected_action
def firewall(session, port):
    return f"ufw allow {port}"


@local_action
def record(session, message):
    print(message)


def configure(session):
    session = record(session, f"configuring {session.target_id}")
    session = package(session, "nginx")
    session = firewall(session, 80)
    session = package(session, "ssl-cert")
    session = scoped(
        session,
        lambda s: service(config_file(s, "/etc/nginx/nginx.conf", "worker_processes 2;"), "nginx", "reload"),
    )
    session = firewall(session, 443)
    return with_precedence(session, {"always_after": "firewall"}, lambda s: record(s, "done"))


def main():
    plans = plan_phase("configure", ["web1", "web2"], configure)
    for plan in plans.values():
        print(plan.summary())
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
