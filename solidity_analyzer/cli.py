"""CLI entrypoint for solidity-analyzer."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer

from solidity_analyzer import __version__
from solidity_analyzer.aggregation import AnalysisResult
from solidity_analyzer.analyzer import ParseFailure, analyze_unit
from solidity_analyzer.config import AppConfig, default_config_template, load_app_config
from solidity_analyzer.engine import AnalysisOptions, RuleFailure, select_rules
from solidity_analyzer.output import render_human, render_json
from solidity_analyzer.rules import default_registry, list_rule_info
from solidity_analyzer.rules.base import Severity
from solidity_analyzer.tree import load_parsed_unit

EXIT_FINDINGS = 1
EXIT_PARSE_FAILURE = 2
AST_SUFFIX = ".json"

app = typer.Typer(
    name="solidity-analyzer",
    no_args_is_help=True,
    help="Analyze Solidity syntax trees for security, gas, and style issues.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("analyze")
def analyze_command(
    sources: Annotated[
        list[Path],
        typer.Argument(help="Solidity source file(s).", exists=True, dir_okay=False),
    ],
    ast: Annotated[
        Path | None,
        typer.Option(help="Parser JSON for a single source (default: <source>.json)."),
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    min_severity: Annotated[
        str | None, typer.Option(help="Drop findings below this severity.")
    ] = None,
    include_rule: Annotated[
        list[str] | None, typer.Option(help="Only run this rule id (repeatable).")
    ] = None,
    exclude_rule: Annotated[
        list[str] | None, typer.Option(help="Skip this rule id (repeatable).")
    ] = None,
    security_only: Annotated[bool, typer.Option(help="Only run security rules.")] = False,
    gas_only: Annotated[bool, typer.Option(help="Only run gas rules.")] = False,
    style_only: Annotated[bool, typer.Option(help="Only run style rules.")] = False,
    fail_on: Annotated[
        str | None,
        typer.Option(help="Exit nonzero if any finding is at or above this severity."),
    ] = None,
    root: Annotated[Path, typer.Option(help="Project root for config lookup.")] = Path("."),
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log per-rule details.")] = False,
) -> None:
    """Analyze Solidity files from their parser JSON."""
    app_config = _load_config_or_raise(root, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    if ast is not None and len(sources) != 1:
        raise typer.BadParameter(
            "--ast can only be used with a single source.", param_hint="--ast"
        )

    options = _resolve_options(
        app_config,
        min_severity=min_severity,
        include_rule=include_rule,
        exclude_rule=exclude_rule,
        security_only=security_only,
        gas_only=gas_only,
        style_only=style_only,
        verbose=verbose,
    )
    fail_threshold = _severity_or_raise(fail_on, "--fail-on") if fail_on else app_config.fail_on
    handler = _configure_logging(options.verbose)
    try:
        results, failures, parse_failures = _analyze_sources(sources, ast, options)
    finally:
        logging.getLogger("solidity_analyzer").removeHandler(handler)

    if output_format == "json":
        typer.echo(render_json(results, failures=failures, parse_failures=parse_failures))
    else:
        for item in parse_failures:
            typer.echo(
                f"{item['file']}:{item['line']}:{item['column']}: {item['message']}",
                err=True,
            )
        typer.echo(render_human(results))

    if parse_failures:
        raise typer.Exit(code=EXIT_PARSE_FAILURE)
    if fail_threshold is not None and any(
        issue.severity.at_least(fail_threshold) for result in results for issue in result.issues
    ):
        raise typer.Exit(code=EXIT_FINDINGS)


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project root for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List available rules and whether the configuration enables them."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    active_ids = _active_rule_ids(app_config.to_options())
    rule_info = list_rule_info()

    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "severity": item.severity.value,
                    "category": item.category,
                    "enabled": item.rule_id in active_ids,
                }
                for item in rule_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.rule_id in active_ids else "disabled"
        lines.append(
            f"- {item.rule_id} [{item.category}, {item.severity.value}, {status}] - "
            f"{item.description}"
        )
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project root for config lookup.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = _active_rule_ids(app_config.to_options())

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- min_severity: {payload['min_severity']}",
        f"- fail_on: {payload['fail_on']}",
        f"- categories: {payload['categories']}",
        f"- rules.enable: {payload['rules']['enable']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".solidity-analyzer.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    root: Annotated[Path, typer.Option(help="Project root for config lookup.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".solidity-analyzer.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report active rules."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(root, config_file)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_ids": _active_rule_ids(app_config.to_options()),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _default_ast_path(source_path: Path) -> Path:
    return source_path.with_name(source_path.name + AST_SUFFIX)


def _resolve_options(
    app_config: AppConfig,
    *,
    min_severity: str | None,
    include_rule: list[str] | None,
    exclude_rule: list[str] | None,
    security_only: bool,
    gas_only: bool,
    style_only: bool,
    verbose: bool,
) -> AnalysisOptions:
    base = app_config.to_options()
    security, gas, style = base.security, base.gas, base.style
    if security_only or gas_only or style_only:
        security, gas, style = security_only, gas_only, style_only
    return AnalysisOptions(
        include_rules=tuple(include_rule) if include_rule is not None else base.include_rules,
        exclude_rules=tuple(exclude_rule) if exclude_rule is not None else base.exclude_rules,
        min_severity=(
            _severity_or_raise(min_severity, "--min-severity")
            if min_severity
            else base.min_severity
        ),
        verbose=verbose or base.verbose,
        security=security,
        gas=gas,
        style=style,
    )


def _active_rule_ids(options: AnalysisOptions) -> list[str]:
    registry = default_registry(options.categories)
    return [rule.rule_id for rule in select_rules(registry, options)]


def _severity_or_raise(value: str, param_hint: str) -> Severity:
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint=param_hint) from exc


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _analyze_sources(
    sources: list[Path],
    ast: Path | None,
    options: AnalysisOptions,
) -> tuple[list[AnalysisResult], list[RuleFailure], list[dict[str, Any]]]:
    results: list[AnalysisResult] = []
    failures: list[RuleFailure] = []
    parse_failures: list[dict[str, Any]] = []
    for source_path in sources:
        ast_path = ast if ast is not None else _default_ast_path(source_path)
        file_id = str(source_path)
        try:
            unit = load_parsed_unit(ast_path)
            run = analyze_unit(
                unit,
                source_path.read_text(encoding="utf-8"),
                file_id,
                options=options,
            )
        except ParseFailure as exc:
            parse_failures.extend(
                {
                    "file": file_id,
                    "line": error.line,
                    "column": error.column,
                    "message": error.message,
                }
                for error in exc.errors
            )
            continue
        except (OSError, ValueError) as exc:
            parse_failures.append({"file": file_id, "line": 0, "column": 0, "message": str(exc)})
            continue
        results.append(run.result)
        failures.extend(run.failures)
    return results, failures, parse_failures


def _configure_logging(verbose: bool) -> logging.Handler:
    package_logger = logging.getLogger("solidity_analyzer")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler
