"""Tests for YAML ruleset loading and overrides."""

import pytest
from pydantic import ValidationError

from placement_check.models.rules import RuleSet, ZoneRuleConfig
from placement_check.models.severity import Severity
from placement_check.rules.loader import (
    RULESETS_ENV,
    get_ruleset_path,
    list_rulesets,
    load_ruleset,
    validate_ruleset_yaml,
)


class TestPackagedRulesets:
    """Test the rulesets shipped with the package."""

    def test_default_is_listed(self):
        """The default ruleset is listed with its description comment."""
        rulesets = {r["name"]: r["description"] for r in list_rulesets()}

        assert "default" in rulesets
        assert "fire buffer" in rulesets["default"]

    def test_load_default(self):
        """Default limits and zone rules load from YAML."""
        rules = load_ruleset("default")

        assert rules.fire_buffer_m == 5.0
        assert rules.max_cluster_size == 1500
        assert rules.max_points == 8
        assert [z.id for z in rules.zone_rules] == [
            "fireroad",
            "property_border",
            "placement_area",
            "forbidden_zone",
            "hazard_zone",
            "sanctuary",
            "slope",
        ]
        border = rules.get_zone_rule("property_border")
        assert border.mode == "outside"
        assert border.severity == Severity.HIGH

    def test_listing_names_zone_layers(self):
        """Listings tell an editor which reference layers to load."""
        default = next(r for r in list_rulesets() if r["name"] == "default")

        assert "fireroad" in default["layers"]
        assert "propertyborder" in default["layers"]

    def test_unknown_ruleset(self):
        """Missing ruleset files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            get_ruleset_path("no_such_ruleset")


class TestCustomRulesets:
    """Test rulesets outside the package."""

    def test_env_directory_takes_priority(self, tmp_path, monkeypatch):
        """A ruleset in PLACEMENT_CHECK_RULESETS hides the packaged one."""
        (tmp_path / "default.yaml").write_text("# Small event\nmax_cluster_size: 600\n")
        monkeypatch.setenv(RULESETS_ENV, str(tmp_path))

        rules = load_ruleset("default")
        listed = {r["name"]: r for r in list_rulesets()}

        assert rules.max_cluster_size == 600
        assert listed["default"]["description"] == "Small event"
        assert listed["default"]["layers"] == []

    def test_packaged_rulesets_still_found(self, tmp_path, monkeypatch):
        """Extra directories add to the packaged rulesets."""
        (tmp_path / "festival.yaml").write_text("max_points: 12\n")
        monkeypatch.setenv(RULESETS_ENV, str(tmp_path))

        names = [r["name"] for r in list_rulesets()]

        assert names == sorted(names)
        assert "festival" in names
        assert "default" in names
        assert load_ruleset("festival").max_points == 12

    def test_load_from_path(self, tmp_path):
        """A path to a YAML file loads directly."""
        path = tmp_path / "event.yaml"
        path.write_text("fire_buffer_m: 3\n")

        assert load_ruleset(str(path)).fire_buffer_m == 3.0

    def test_missing_path(self, tmp_path):
        """A missing YAML path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_ruleset(str(tmp_path / "missing.yaml"))


class TestOverrides:
    """Test merge patch overrides."""

    def test_scalar_override(self):
        """Top-level values are replaced."""
        rules = load_ruleset("default", {"max_cluster_size": 700})

        assert rules.max_cluster_size == 700
        assert rules.max_sqm_for_entity == 1500

    def test_nested_override_keeps_siblings(self):
        """Nested dicts are merged, not replaced."""
        rules = load_ruleset("default", {"allowed_area": {"a": 0.3}})

        assert rules.allowed_area.a == 0.3
        assert rules.allowed_area.b == -0.2

    def test_list_override_replaces(self):
        """Lists such as zone_rules are replaced as a whole."""
        rules = load_ruleset("default", {
            "zone_rules": [{
                "id": "slope",
                "layer": "slope",
                "severity": "low",
                "short_message": "Slopey!",
                "message": "Steep",
            }],
        })

        assert [z.id for z in rules.zone_rules] == ["slope"]


class TestValidation:
    """Test ruleset validation."""

    def test_valid_yaml(self):
        """A minimal document is valid and uses defaults."""
        assert validate_ruleset_yaml("max_points: 10\n") == (True, None)

    def test_empty_yaml_uses_defaults(self):
        """An empty document gives the default rule set."""
        assert RuleSet.from_yaml("").max_cluster_size == 1500

    def test_bad_value(self):
        """Out of range values are reported."""
        valid, error = validate_ruleset_yaml("max_cluster_size: -1\n")

        assert not valid
        assert "max_cluster_size" in error

    def test_broken_yaml(self):
        """Syntax errors are reported, not raised."""
        valid, error = validate_ruleset_yaml("zone_rules: [unclosed\n")

        assert not valid
        assert error

    def test_unknown_disabled_rule(self):
        """Disabled ids must name a catalog or zone rule."""
        valid, error = validate_ruleset_yaml("disabled_rules: [too_big, no_such_rule]\n")

        assert not valid
        assert "no_such_rule" in error
        assert "too_big" not in error

    def test_disabled_zone_rule(self):
        """Zone rules of the same document can be disabled."""
        text = (
            "zone_rules:\n"
            "  - {id: slope, layer: slope, short_message: s, message: m}\n"
            "disabled_rules: [slope]\n"
        )

        assert validate_ruleset_yaml(text) == (True, None)

    def test_duplicate_zone_ids(self):
        """Zone rule ids must be unique."""
        zone = {"id": "z", "layer": "l", "short_message": "s", "message": "m"}

        with pytest.raises(ValidationError):
            RuleSet(zone_rules=[zone, zone])

    def test_severity_names(self):
        """Severities may be given by name in any case, or by number."""
        base = {"id": "z", "layer": "l", "short_message": "s", "message": "m"}

        assert ZoneRuleConfig(severity="High", **base).severity == Severity.HIGH
        assert ZoneRuleConfig(severity=1, **base).severity == Severity.LOW
        with pytest.raises(ValidationError):
            ZoneRuleConfig(severity="critical", **base)

    def test_unknown_mode(self):
        """Only overlap, inside and outside are valid modes."""
        with pytest.raises(ValidationError):
            ZoneRuleConfig(id="z", layer="l", mode="near", short_message="s", message="m")
