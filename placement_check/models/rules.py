"""Placement rule configuration: limits, area formula constants and zone rules."""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .severity import Severity


class AllowedAreaRules(BaseModel):
    """Constants of the power function giving extra room over the calculated need.

    extra = clamp(a * need**b, 0, a)
    """

    a: float = Field(default=0.5, ge=0, description="Maximum fraction of extra area")
    b: float = Field(default=-0.2, le=0, description="Decay exponent of the extra fraction")


class AreaRates(BaseModel):
    """Area needed per person and per vehicle in square meters."""

    sqm_per_person: float = Field(default=10.0, ge=0, description="m² per person in tents")
    sqm_per_vehicle: float = Field(default=70.0, ge=0, description="m² per vehicle")


class ZoneRuleConfig(BaseModel):
    """A rule that tests an entity against one reference layer."""

    id: str = Field(..., description="Rule identifier")
    layer: str = Field(..., description="Name of the reference layer")
    mode: Literal["overlap", "inside", "outside"] = Field(
        default="overlap",
        description="overlap: overlaps or lies inside a feature; "
                    "inside: lies inside a feature; outside: lies inside no feature",
    )
    severity: Severity = Field(default=Severity.MEDIUM, description="Severity when triggered")
    short_message: str = Field(..., description="Compact message for on-screen display")
    message: str = Field(..., description="Full message for the entity popup")

    @field_validator("severity", mode="before")
    @classmethod
    def parse_severity(cls, v):
        """Accept severity names ("high") as well as numbers."""
        if isinstance(v, str):
            try:
                return Severity[v.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown severity '{v}'")
        return v


class RuleSet(BaseModel):
    """Complete rule set for placement checks.

    Rules can be overridden at request time via JSON merge patch.
    """

    # Fire safety buffer
    fire_buffer_m: float = Field(
        default=5.0, ge=0, description="Fire safety distance around every placement in meters"
    )
    bbox_epsilon_m: float = Field(
        default=0.5, ge=0, description="Extra padding on bounding boxes before exact tests"
    )

    # Size limits
    max_cluster_size: float = Field(
        default=1500.0, gt=0, description="Max combined m² of a fire-buffer cluster"
    )
    max_sqm_for_entity: float = Field(
        default=1500.0, gt=0, description="Max m² for a single placement"
    )
    max_power_need: float = Field(default=7000.0, ge=0, description="Power need warning in watts")
    max_points: int = Field(
        default=8, ge=3, description="Closed ring length above which a shape is considered fiddly"
    )

    allowed_area: AllowedAreaRules = Field(default_factory=AllowedAreaRules)
    area_rates: AreaRates = Field(default_factory=AreaRates)

    zone_rules: List[ZoneRuleConfig] = Field(
        default_factory=list, description="Rules checked against reference layers"
    )
    disabled_rules: List[str] = Field(
        default_factory=list, description="Rule ids to leave out of the catalog"
    )

    @field_validator("zone_rules")
    @classmethod
    def validate_zone_rule_ids(cls, v: List[ZoneRuleConfig]) -> List[ZoneRuleConfig]:
        """Zone rule ids must be unique."""
        seen = set()
        for rule in v:
            if rule.id in seen:
                raise ValueError(f"Duplicate zone rule id '{rule.id}'")
            seen.add(rule.id)
        return v

    def is_enabled(self, rule_id: str) -> bool:
        return rule_id not in self.disabled_rules

    def get_zone_rule(self, rule_id: str) -> Optional[ZoneRuleConfig]:
        for rule in self.zone_rules:
            if rule.id == rule_id:
                return rule
        return None

    def reasonable_allowed_area(self, calculated_need: float) -> float:
        """Largest area that is still reasonable for a calculated need.

        Small needs get up to ``a`` (50%) extra, shrinking as the need grows,
        and the result never exceeds the cluster limit.
        """
        if calculated_need <= 0:
            return 0.0
        a, b = self.allowed_area.a, self.allowed_area.b
        extra = max(0.0, min(a * calculated_need ** b, a))
        return min(calculated_need * (1 + extra), self.max_cluster_size)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "RuleSet":
        """Load ruleset from YAML string."""
        import yaml
        data = yaml.safe_load(yaml_content) or {}
        return cls(**data)

    def merge_override(self, override: Dict) -> "RuleSet":
        """Merge override dict into this ruleset (JSON merge patch semantics)."""
        import json
        base = json.loads(self.model_dump_json())
        _deep_merge(base, override)
        return RuleSet(**base)


def _deep_merge(base: Dict, override: Dict) -> None:
    """Deep merge override into base dict (modifies base in place)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
