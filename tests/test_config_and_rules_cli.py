"""Tests for config loading and rules/config CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from solidity_analyzer.cli import app
from solidity_analyzer.config import load_app_config
from solidity_analyzer.rules.base import Severity

runner = CliRunner()


def test_load_app_config_prefers_dot_file_over_pyproject(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(
            [
                "[tool.solidity_analyzer]",
                'format = "human"',
                'fail_on = "critical"',
            ]
        ),
        encoding="utf-8",
    )
    (repo / ".solidity-analyzer.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                'fail_on = "high"',
                'min_severity = "LOW"',
                "",
                "[rules]",
                'enable = ["SEC-001", "GAS-002"]',
                'disable = ["GAS-002"]',
                "",
                "[categories]",
                "style = false",
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.format == "json"
    assert config.fail_on == Severity.HIGH
    assert config.min_severity == Severity.LOW
    assert config.rule_enable == ["SEC-001", "GAS-002"]
    assert config.rule_disable == ["GAS-002"]
    assert config.categories.style is False
    assert config.source == str(repo / ".solidity-analyzer.toml")

    options = config.to_options()
    assert options.include_rules == ("SEC-001", "GAS-002")
    assert options.categories == ("security", "gas")


def test_load_app_config_reads_pyproject_hyphenated_key(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(
            [
                '[tool."solidity-analyzer"]',
                'format = "json"',
                "",
                '[tool."solidity-analyzer".rules]',
                'disable = ["BP002"]',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.format == "json"
    assert config.rule_disable == ["BP002"]
    assert config.source == str(repo / "pyproject.toml")


def test_load_app_config_defaults_without_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)
    assert config.source is None
    assert config.format == "human"
    assert config.fail_on is None
    assert config.to_options().categories == ("security", "gas", "style")


def test_pyproject_without_tool_section_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert load_app_config(tmp_path).source is None


def test_load_app_config_from_explicit_config_path(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    config_path = repo / "custom.toml"
    config_path.write_text(
        "\n".join(
            [
                'format = "json"',
                "",
                "[rules]",
                'enable = ["SEC-004"]',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo, config_path=Path("custom.toml"))
    assert config.format == "json"
    assert config.rule_enable == ["SEC-004"]
    assert config.source == str(config_path)


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ('min_severity = "urgent"', "min_severity: Unknown severity 'urgent'"),
        ('format = "xml"', "format must be one of: human, json"),
        ("verbose = 1", "verbose must be a boolean"),
        ("[rules]\nenable = [1]", "rules.enable must be a list of strings"),
        ('categories = "all"', "categories must be a table/object"),
        ("[categories]\ngas = \"yes\"", "categories.gas must be a boolean"),
        ("format = ", "Invalid TOML"),
    ],
)
def test_invalid_config_values_name_the_field(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / ".solidity-analyzer.toml").write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_app_config(tmp_path)


def test_missing_explicit_config_path_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Config file does not exist"):
        load_app_config(tmp_path, config_path=Path("nope.toml"))


def test_rules_command_json_lists_enabled_state_from_config(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".solidity-analyzer.toml").write_text(
        "\n".join(
            [
                "[rules]",
                'enable = ["SEC-001", "SEC-004", "BP002"]',
                'disable = ["BP002"]',
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["rules", "--root", str(repo), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    rules_by_id = {item["rule_id"]: item for item in payload["rules"]}

    assert len(rules_by_id) == 12
    assert rules_by_id["SEC-001"]["enabled"] is True
    assert rules_by_id["SEC-004"]["enabled"] is True
    assert rules_by_id["BP002"]["enabled"] is False
    assert rules_by_id["GAS-001"]["enabled"] is False
    assert rules_by_id["SEC-001"]["severity"] == "high"
    assert payload["meta"]["config_source"] == str(repo / ".solidity-analyzer.toml")


def test_rules_command_human_marks_disabled_categories(tmp_path: Path) -> None:
    config_path = tmp_path / ".solidity-analyzer.toml"
    config_path.write_text("[categories]\ngas = false\n", encoding="utf-8")

    result = runner.invoke(app, ["rules", "--root", str(tmp_path)])
    assert result.exit_code == 0
    assert "Available rules:" in result.stdout
    assert "- GAS-001 [gas, low, disabled]" in result.stdout
    assert "- SEC-001 [security, high, enabled]" in result.stdout


def test_config_command_json_shows_resolved_values(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".solidity-analyzer.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                'fail_on = "medium"',
                "",
                "[rules]",
                'enable = ["SEC-001", "GAS-003"]',
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["config", "--root", str(repo), "--format", "json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["format"] == "json"
    assert payload["fail_on"] == "medium"
    assert payload["min_severity"] is None
    assert payload["rules"]["enable"] == ["SEC-001", "GAS-003"]
    assert payload["active_rule_ids"] == ["SEC-001", "GAS-003"]
    assert payload["categories"] == {"security": True, "gas": True, "style": True}
    assert payload["source"] == str(repo / ".solidity-analyzer.toml")


def test_config_command_reports_invalid_config(tmp_path: Path) -> None:
    (tmp_path / ".solidity-analyzer.toml").write_text('fail_on = "urgent"', encoding="utf-8")
    result = runner.invoke(app, ["config", "--root", str(tmp_path)])
    assert result.exit_code == 2
    assert "fail_on" in result.stderr


def test_config_init_and_validate_commands(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    config_path = repo / ".solidity-analyzer.toml"

    init_result = runner.invoke(app, ["config-init", "--out", str(config_path)])
    assert init_result.exit_code == 0
    assert config_path.exists()
    content = config_path.read_text(encoding="utf-8")
    assert "[categories]" in content
    assert "[rules]" in content

    validate_result = runner.invoke(
        app,
        ["config-validate", "--root", str(repo), "--config", str(config_path), "--format", "json"],
    )
    assert validate_result.exit_code == 0
    payload = json.loads(validate_result.stdout)
    assert payload["ok"] is True
    assert "BP002" not in payload["active_rule_ids"]
    assert "SEC-001" in payload["active_rule_ids"]


def test_config_init_refuses_to_overwrite_without_force(tmp_path: Path) -> None:
    config_path = tmp_path / ".solidity-analyzer.toml"
    config_path.write_text("# mine\n", encoding="utf-8")

    refused = runner.invoke(app, ["config-init", "--out", str(config_path)])
    assert refused.exit_code == 2
    assert config_path.read_text(encoding="utf-8") == "# mine\n"

    forced = runner.invoke(app, ["config-init", "--out", str(config_path), "--force"])
    assert forced.exit_code == 0
    assert "[rules]" in config_path.read_text(encoding="utf-8")
