"""Pydantic models and containers for placement-check."""

from .entity import PlacementEntity
from .layers import ReferenceLayer, ReferenceLayers
from .repository import EntityRepository
from .rules import AllowedAreaRules, AreaRates, RuleSet, ZoneRuleConfig
from .severity import Severity

__all__ = [
    # Entities
    "PlacementEntity",
    "EntityRepository",
    # Reference data
    "ReferenceLayer",
    "ReferenceLayers",
    # Rules
    "RuleSet",
    "ZoneRuleConfig",
    "AllowedAreaRules",
    "AreaRates",
    "Severity",
]
