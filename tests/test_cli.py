"""CLI tests for the analyze command."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from solidity_analyzer import __version__
from solidity_analyzer.cli import app
from tests.helpers_ast import WITHDRAW_SOURCE, withdraw_unit

runner = CliRunner()


def _write_bank(directory: Path) -> Path:
    source = directory / "Bank.sol"
    source.write_text(WITHDRAW_SOURCE, encoding="utf-8")
    (directory / "Bank.sol.json").write_text(json.dumps(withdraw_unit()), encoding="utf-8")
    return source


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "Analyze Solidity syntax trees" in result.stdout
    assert "analyze" in result.stdout
    assert "config-init" in result.stdout
    assert "config-validate" in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_analyze_json_end_to_end(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)

    result = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--format", "json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)

    [file_result] = payload["files"]
    assert file_result["file"] == str(source)
    security_ids = [issue["rule_id"] for issue in file_result["security_issues"]]
    assert "SEC-001" in security_ids
    reentrancy = next(
        issue for issue in file_result["security_issues"] if issue["rule_id"] == "SEC-001"
    )
    assert reentrancy["severity"] == "high"
    assert reentrancy["line"] == 7
    assert file_result["stats"]["total_issues"] == (
        len(file_result["security_issues"])
        + len(file_result["gas_issues"])
        + len(file_result["style_issues"])
    )
    assert payload["rule_failures"] == []
    assert payload["parse_failures"] == []
    assert payload["meta"]["version"] == __version__


def test_analyze_human_output(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)

    result = runner.invoke(app, ["analyze", str(source), "--root", str(tmp_path)])
    assert result.exit_code == 0
    assert f"Analysis results for {source}:" in result.stdout
    assert "Security Issues" in result.stdout
    assert "[SEC-001]" in result.stdout
    assert "Analyzed 1 file(s)" in result.stdout


def test_analyze_security_only_and_min_severity(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)

    result = runner.invoke(
        app,
        [
            "analyze",
            str(source),
            "--root",
            str(tmp_path),
            "--format",
            "json",
            "--security-only",
            "--min-severity",
            "high",
        ],
    )
    assert result.exit_code == 0
    [file_result] = json.loads(result.stdout)["files"]
    assert [issue["rule_id"] for issue in file_result["security_issues"]] == ["SEC-001"]
    assert file_result["gas_issues"] == []
    assert file_result["style_issues"] == []


def test_analyze_include_and_exclude_rule(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)

    result = runner.invoke(
        app,
        [
            "analyze",
            str(source),
            "--root",
            str(tmp_path),
            "--format",
            "json",
            "--include-rule",
            "SEC-001",
            "--include-rule",
            "SEC-002",
            "--exclude-rule",
            "SEC-001",
        ],
    )
    assert result.exit_code == 0
    [file_result] = json.loads(result.stdout)["files"]
    assert {issue["rule_id"] for issue in file_result["security_issues"]} == {"SEC-002"}


def test_analyze_fail_on_exits_nonzero(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)

    failing = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--fail-on", "high"]
    )
    passing = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--fail-on", "critical"]
    )
    assert failing.exit_code == 1
    assert passing.exit_code == 0


def test_analyze_fail_on_from_config(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)
    (tmp_path / ".solidity-analyzer.toml").write_text('fail_on = "medium"\n', encoding="utf-8")

    result = runner.invoke(app, ["analyze", str(source), "--root", str(tmp_path)])
    assert result.exit_code == 1


def test_analyze_parse_errors_exit_2_without_findings(tmp_path: Path) -> None:
    source = tmp_path / "Broken.sol"
    source.write_text("contract Broken {\n  uint x\n}\n", encoding="utf-8")
    (tmp_path / "Broken.sol.json").write_text(
        json.dumps({"errors": [{"line": 2, "column": 8, "message": "missing ';'"}]}),
        encoding="utf-8",
    )

    human = runner.invoke(app, ["analyze", str(source), "--root", str(tmp_path)])
    assert human.exit_code == 2
    assert f"{source}:2:8: missing ';'" in human.stderr
    assert "Analyzed 0 file(s)" in human.stdout

    as_json = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--format", "json"]
    )
    assert as_json.exit_code == 2
    payload = json.loads(as_json.stdout)
    assert payload["files"] == []
    assert payload["parse_failures"] == [
        {"file": str(source), "line": 2, "column": 8, "message": "missing ';'"}
    ]


def test_analyze_missing_ast_is_a_parse_failure(tmp_path: Path) -> None:
    source = tmp_path / "Lonely.sol"
    source.write_text("contract Lonely {}\n", encoding="utf-8")

    result = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--format", "json"]
    )
    assert result.exit_code == 2
    [failure] = json.loads(result.stdout)["parse_failures"]
    assert failure["file"] == str(source)


def test_analyze_explicit_ast_path(tmp_path: Path) -> None:
    source = tmp_path / "Bank.sol"
    source.write_text(WITHDRAW_SOURCE, encoding="utf-8")
    ast_path = tmp_path / "out" / "bank-ast.json"
    ast_path.parent.mkdir()
    ast_path.write_text(json.dumps({"ast": withdraw_unit(), "errors": []}), encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "analyze",
            str(source),
            "--ast",
            str(ast_path),
            "--root",
            str(tmp_path),
            "--format",
            "json",
        ],
    )
    assert result.exit_code == 0
    [file_result] = json.loads(result.stdout)["files"]
    assert any(issue["rule_id"] == "SEC-001" for issue in file_result["security_issues"])


def test_analyze_rejects_ast_with_multiple_sources(tmp_path: Path) -> None:
    first = _write_bank(tmp_path)
    second = tmp_path / "Other.sol"
    second.write_text("contract Other {}\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["analyze", str(first), str(second), "--ast", str(tmp_path / "Bank.sol.json")],
    )
    assert result.exit_code == 2
    assert "can only be used" in result.stderr


def test_analyze_rejects_unknown_severity(tmp_path: Path) -> None:
    source = _write_bank(tmp_path)
    result = runner.invoke(
        app, ["analyze", str(source), "--root", str(tmp_path), "--min-severity", "urgent"]
    )
    assert result.exit_code == 2
    assert "Unknown severity" in result.stderr
