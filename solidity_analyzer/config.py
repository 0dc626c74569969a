"""Configuration loading for solidity-analyzer."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from solidity_analyzer.engine import AnalysisOptions
from solidity_analyzer.rules.base import Severity

CONFIG_FILENAMES = (".solidity-analyzer.toml", "solidity-analyzer.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("solidity_analyzer", "solidity-analyzer")


@dataclass(slots=True)
class CategoriesConfig:
    """Which rule categories run."""

    security: bool = True
    gas: bool = True
    style: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"security": self.security, "gas": self.gas, "style": self.style}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    min_severity: Severity | None = None
    fail_on: Severity | None = None
    verbose: bool = False
    rule_enable: list[str] = field(default_factory=list)
    rule_disable: list[str] = field(default_factory=list)
    categories: CategoriesConfig = field(default_factory=CategoriesConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "min_severity": self.min_severity.value if self.min_severity else None,
            "fail_on": self.fail_on.value if self.fail_on else None,
            "verbose": self.verbose,
            "rules": {
                "enable": list(self.rule_enable),
                "disable": list(self.rule_disable),
            },
            "categories": self.categories.to_dict(),
            "source": self.source,
        }

    def to_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            include_rules=tuple(self.rule_enable),
            exclude_rules=tuple(self.rule_disable),
            min_severity=self.min_severity,
            verbose=self.verbose,
            security=self.categories.security,
            gas=self.categories.gas,
            style=self.categories.style,
        )


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or project-local files with precedence."""
    root = root.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (root / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = root / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = root / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            '# min_severity = "low"',
            'fail_on = "high"',
            "verbose = false",
            "",
            "[categories]",
            "security = true",
            "gas = true",
            "style = true",
            "",
            "[rules]",
            "# Only run these rule ids (empty means all).",
            "enable = []",
            "# Never run these rule ids; applied after enable.",
            'disable = ["BP002"]',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    rules_mapping = _as_table(mapping.get("rules"), "rules")
    categories_mapping = _as_table(mapping.get("categories"), "categories")

    return AppConfig(
        format=_as_choice(mapping.get("format", "human"), {"human", "json"}, "format"),
        min_severity=_as_severity_or_none(mapping.get("min_severity"), "min_severity"),
        fail_on=_as_severity_or_none(mapping.get("fail_on"), "fail_on"),
        verbose=_as_bool(mapping.get("verbose", False), "verbose"),
        rule_enable=_as_str_list(rules_mapping.get("enable"), "rules.enable"),
        rule_disable=_as_str_list(rules_mapping.get("disable"), "rules.disable"),
        categories=CategoriesConfig(
            security=_as_bool(categories_mapping.get("security", True), "categories.security"),
            gas=_as_bool(categories_mapping.get("gas", True), "categories.gas"),
            style=_as_bool(categories_mapping.get("style", True), "categories.style"),
        ),
        source=source,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_severity_or_none(raw: Any, field_name: str) -> Severity | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValueError(f"{field_name} must be a string")
    try:
        return Severity.parse(raw)
    except ValueError as exc:
        raise ValueError(f"{field_name}: {exc}") from exc


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
