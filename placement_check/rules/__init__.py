"""Placement rules: catalog, engine and ruleset loading."""

from .catalog import RuleDefinition, build_rules, catalog_definitions
from .engine import RuleEngine
from .loader import (
    get_ruleset_path,
    list_rulesets,
    load_ruleset,
    ruleset_dirs,
    validate_ruleset_yaml,
)
from .rule import Outcome, Rule, Verdict, sort_triggered, worst_severity

__all__ = [
    "Rule",
    "Verdict",
    "Outcome",
    "sort_triggered",
    "worst_severity",
    "RuleDefinition",
    "RuleEngine",
    "build_rules",
    "catalog_definitions",
    "load_ruleset",
    "list_rulesets",
    "get_ruleset_path",
    "ruleset_dirs",
    "validate_ruleset_yaml",
]
