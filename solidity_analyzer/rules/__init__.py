"""Rules package."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from solidity_analyzer.rules.base import CATEGORIES, Finding, Rule, RuleBase, Severity
from solidity_analyzer.rules.dangerous_functions import DangerousFunctionsRule
from solidity_analyzer.rules.event_emission import EventEmissionRule
from solidity_analyzer.rules.explicit_uint256 import ExplicitUint256Rule
from solidity_analyzer.rules.function_naming import FunctionNamingRule
from solidity_analyzer.rules.magic_numbers import MagicNumbersRule
from solidity_analyzer.rules.missing_natspec import MissingNatspecRule
from solidity_analyzer.rules.missing_visibility import MissingVisibilityRule
from solidity_analyzer.rules.pre_increment import PreIncrementRule
from solidity_analyzer.rules.reentrancy import ReentrancyRule
from solidity_analyzer.rules.storage_packing import StoragePackingRule
from solidity_analyzer.rules.tx_origin import TxOriginRule
from solidity_analyzer.rules.unchecked_calls import UncheckedCallsRule

__all__ = [
    "CATEGORIES",
    "Finding",
    "Rule",
    "RuleBase",
    "RuleInfo",
    "RuleRegistry",
    "Severity",
    "default_registry",
    "list_rule_info",
]

_BUILTIN_RULES: tuple[type[RuleBase], ...] = (
    ReentrancyRule,
    UncheckedCallsRule,
    DangerousFunctionsRule,
    TxOriginRule,
    ExplicitUint256Rule,
    StoragePackingRule,
    PreIncrementRule,
    MissingVisibilityRule,
    MissingNatspecRule,
    MagicNumbersRule,
    FunctionNamingRule,
    EventEmissionRule,
)


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    name: str
    description: str
    severity: Severity
    category: str


class RuleRegistry:
    """Ordered, append-only collection of rules with unique identifiers."""

    __slots__ = ("_rules",)

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        ordered: list[Rule] = []
        seen: set[str] = set()
        for rule in rules:
            _validate_rule(rule)
            if rule.rule_id in seen:
                raise ValueError(f"Duplicate rule id: {rule.rule_id}")
            seen.add(rule.rule_id)
            ordered.append(rule)
        self._rules: tuple[Rule, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(rule.rule_id == rule_id for rule in self._rules)

    def __repr__(self) -> str:
        return f"RuleRegistry({list(self.ids())!r})"

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def ids(self) -> list[str]:
        return [rule.rule_id for rule in self._rules]

    def get(self, rule_id: str) -> Rule | None:
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def with_rule(self, rule: Rule) -> RuleRegistry:
        """Return a new registry with ``rule`` appended."""
        return RuleRegistry((*self._rules, rule))

    def for_categories(self, categories: Iterable[str]) -> RuleRegistry:
        """Return the subset of rules whose category is listed, order kept."""
        wanted = set(categories)
        return RuleRegistry(rule for rule in self._rules if rule.category in wanted)


def default_registry(categories: Iterable[str] | None = None) -> RuleRegistry:
    """Return the built-in rules, optionally restricted to some categories."""
    if categories is None:
        wanted = set(CATEGORIES)
    else:
        wanted = set(categories)
        unknown = sorted(wanted.difference(CATEGORIES))
        if unknown:
            joined = ", ".join(unknown)
            raise ValueError(f"Unknown rule categories: {joined}")
    return RuleRegistry(rule_cls() for rule_cls in _BUILTIN_RULES if rule_cls.category in wanted)


def list_rule_info(registry: RuleRegistry | None = None) -> list[RuleInfo]:
    """Return metadata for every rule in ``registry`` (default: built-ins)."""
    active = registry if registry is not None else default_registry()
    return [
        RuleInfo(
            rule_id=rule.rule_id,
            name=rule.name,
            description=rule.description,
            severity=Severity.parse(rule.severity),
            category=rule.category,
        )
        for rule in active
    ]


def _validate_rule(rule: Rule) -> None:
    rule_id = getattr(rule, "rule_id", None)
    if not isinstance(rule_id, str) or not rule_id:
        raise ValueError(f"Rule {rule!r} has no rule_id")
    category = getattr(rule, "category", None)
    if category not in CATEGORIES:
        choices = ", ".join(CATEGORIES)
        raise ValueError(f"Rule {rule_id} has unknown category '{category}'. Expected: {choices}")
    if not callable(getattr(rule, "detect", None)):
        raise ValueError(f"Rule {rule_id} does not implement detect()")
