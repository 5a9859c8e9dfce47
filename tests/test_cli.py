# tests/test_cli.py
"""Tests for the phaseplan command line."""

import json
import textwrap

import pytest
import yaml

from phaseplan.cli import load_callable, main
from phaseplan.definition import clear_actions

PHASES = textwrap.dedent("""
    from phaseplan import aggregated_action, enter_scope, remote_action


    @aggregated_action
    def package(session, name):
        return f"apt-get install -y {name}"


    @remote_action
    def configure(session, path):
        return f"edit {path}"


    def phase(session):
        session = package(session, "nginx")
        session = configure(session, "/etc/nginx.conf")
        return package(session, "curl")


    def leaky(session):
        return enter_scope(configure(session, "/etc/hosts"))
""")

BROKEN = textwrap.dedent("""
    from phaseplan import declare_remote_action

    broken = declare_remote_action("broken", None, lambda session: session)


    def phase(session):
        return broken(session)
""")


def write_module(tmp_path, monkeypatch, prefix, source):
    """Write source as an importable module. Returns its name."""
    name = f"{prefix}_{tmp_path.name}"
    (tmp_path / f"{name}.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


@pytest.fixture
def phases(tmp_path, monkeypatch):
    """Write a phase module and make it importable. Returns its name."""
    clear_actions()
    yield write_module(tmp_path, monkeypatch, "sample_phases", PHASES)
    clear_actions()


@pytest.fixture
def broken_phases(tmp_path, monkeypatch):
    """Write a phase module whose action declaration is malformed."""
    clear_actions()
    yield write_module(tmp_path, monkeypatch, "broken_phases", BROKEN)
    clear_actions()


class TestLoadCallable:
    """Test module:callable loading."""

    def test_load(self, phases):
        assert load_callable(f"{phases}:phase").__name__ == "phase"

    def test_missing_colon(self):
        with pytest.raises(ValueError):
            load_callable("phaseplan.cli")

    def test_not_callable(self):
        with pytest.raises(ValueError):
            load_callable("phaseplan:__version__")


class TestPlanCommand:
    """Test `phaseplan plan`."""

    def test_text(self, phases, capsys):
        assert main(["plan", f"{phases}:phase", "-t", "web1"]) == 0
        out = capsys.readouterr().out
        assert "Plan: configure on web1" in out
        assert "package [aggregated" in out

    def test_json(self, phases, capsys):
        assert main(["plan", f"{phases}:phase", "-t", "web1", "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 1
        assert data[0]["steps"][0]["arg_sets"] == [["nginx"], ["curl"]]
        assert data[0]["steps"][1]["action_name"] == "configure"

    def test_config_file(self, phases, tmp_path, capsys):
        config = tmp_path / "plan.yaml"
        config.write_text("phase: deploy\ntargets: [web1, web2]\nformat: yaml\n")

        assert main(["plan", f"{phases}:phase", "--config", str(config)]) == 0
        docs = list(yaml.safe_load_all(capsys.readouterr().out))
        assert [d["target_id"] for d in docs] == ["web1", "web2"]
        assert all(d["phase"] == "deploy" for d in docs)

    def test_flags_override_config(self, phases, tmp_path, capsys):
        config = tmp_path / "plan.yaml"
        config.write_text("targets: [web1, web2]\nformat: yaml\n")

        assert main(["plan", f"{phases}:phase", "--config", str(config),
                     "-t", "db1", "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [d["target_id"] for d in data] == ["db1"]

    def test_output_file(self, phases, tmp_path, capsys):
        output = tmp_path / "plan.json"
        assert main(["plan", f"{phases}:phase", "--format", "json", "-o", str(output)]) == 0
        assert "Plan saved to" in capsys.readouterr().out
        assert json.loads(output.read_text())[0]["target_id"] == "origin"

    def test_scheduling_error(self, phases, capsys):
        """Scheduling errors are reported and exit with status 1."""
        assert main(["plan", f"{phases}:leaky", "-t", "web1"]) == 1
        err = capsys.readouterr().err
        assert err.count("Leaked scope") == 1
        assert "Error: " in err

    def test_malformed_declaration(self, broken_phases, capsys):
        """Definition errors raised while importing the phase module exit with status 1."""
        assert main(["plan", f"{broken_phases}:phase"]) == 1
        assert "Error: Action definition is missing its argument list" in capsys.readouterr().err

    def test_missing_module(self, capsys):
        assert main(["plan", "no_such_phases_module:phase"]) == 1
        assert "Error: " in capsys.readouterr().err

    def test_missing_callable(self, phases, capsys):
        assert main(["plan", f"{phases}:no_such_phase"]) == 1
        assert "Error: " in capsys.readouterr().err

    def test_invalid_body_reference(self, capsys):
        assert main(["plan", "json"]) == 1
        assert "Expected module:callable" in capsys.readouterr().err

    def test_precedence_not_a_mapping(self, phases, tmp_path, capsys):
        config = tmp_path / "plan.yaml"
        config.write_text("precedence: [a, b]\n")

        assert main(["plan", f"{phases}:phase", "--config", str(config)]) == 1
        assert "precedence must be a mapping" in capsys.readouterr().err

    def test_unknown_format_in_config(self, phases, tmp_path, capsys):
        config = tmp_path / "plan.yaml"
        config.write_text("format: xml\n")

        assert main(["plan", f"{phases}:phase", "--config", str(config)]) == 1
        assert "Unknown output format" in capsys.readouterr().err

    def test_missing_config_file(self, phases, tmp_path, capsys):
        assert main(["plan", f"{phases}:phase", "--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Error: " in capsys.readouterr().err


class TestActionsCommand:
    """Test `phaseplan actions`."""

    def test_lists_declared_actions(self, phases, capsys):
        assert main(["actions", phases]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [
            "configure: in-sequence remote-script@target (path)",
            "package: aggregated remote-script@target (name)",
        ]

    def test_module_without_actions(self, capsys):
        assert main(["actions", "json"]) == 0
        assert "No actions declared" in capsys.readouterr().out

    def test_malformed_declaration(self, broken_phases, capsys):
        assert main(["actions", broken_phases]) == 1
        assert "missing its argument list" in capsys.readouterr().err

    def test_missing_module(self, capsys):
        assert main(["actions", "no_such_phases_module"]) == 1
        assert "Error: " in capsys.readouterr().err


def test_no_command(capsys):
    assert main([]) == 1
