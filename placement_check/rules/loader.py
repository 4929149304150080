"""Placement ruleset files.

Rulesets are YAML documents describing a ``RuleSet``. They are looked up in
the directories named by ``PLACEMENT_CHECK_RULESETS`` (os.pathsep separated)
and then in the packaged ``rulesets/`` directory, so an event can ship its
own limits and zone layers without touching the package.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..models.rules import RuleSet
from .catalog import CLUSTER_RULES, ENTITY_RULES

logger = logging.getLogger(__name__)

# Packaged rulesets (inside the package for proper wheel packaging)
RULESETS_DIR = Path(__file__).parent.parent / "rulesets"
RULESETS_ENV = "PLACEMENT_CHECK_RULESETS"


def ruleset_dirs() -> list[Path]:
    """Directories searched for rulesets, highest priority first."""
    extra = os.environ.get(RULESETS_ENV, "")
    dirs = [Path(p) for p in extra.split(os.pathsep) if p.strip()]
    return dirs + [RULESETS_DIR]


def get_ruleset_path(name: str = "default") -> Path:
    """Resolve a ruleset name or a path to a YAML file.

    Raises:
        FileNotFoundError: If no search directory has the ruleset
    """
    candidate = Path(name)
    if candidate.suffix in (".yaml", ".yml"):
        if candidate.exists():
            return candidate
        raise FileNotFoundError(f"Ruleset file not found: {candidate}")

    searched = ruleset_dirs()
    for directory in searched:
        path = directory / f"{name}.yaml"
        if path.exists():
            return path

    raise FileNotFoundError(
        f"Ruleset '{name}' not found in {', '.join(str(d) for d in searched)}"
    )


def list_rulesets() -> list[dict[str, Any]]:
    """List rulesets with their description and the layers their zone rules need.

    A ruleset in a higher priority directory hides one of the same name below it.
    """
    found: dict[str, dict[str, Any]] = {}

    for directory in ruleset_dirs():
        if not directory.is_dir():
            logger.warning(f"Rulesets directory not found: {directory}")
            continue
        for yaml_file in sorted(directory.glob("*.yaml")):
            if yaml_file.stem in found:
                continue
            found[yaml_file.stem] = {
                "name": yaml_file.stem,
                "description": _extract_description(yaml_file),
                "layers": _zone_layers(yaml_file),
                "path": str(yaml_file),
            }

    return [found[name] for name in sorted(found)]


def _extract_description(yaml_path: Path) -> str:
    """First comment line of the file, or a generic description."""
    with open(yaml_path) as f:
        first_line = f.readline().strip()
    if first_line.startswith("#"):
        return first_line.lstrip("#").strip()
    return f"Placement rules from {yaml_path.name}"


def _zone_layers(yaml_path: Path) -> list[str]:
    """Reference layers named by the zone rules of a ruleset file."""
    try:
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Could not parse {yaml_path.name}: {e}")
        return []
    if not isinstance(data, dict):
        return []
    zone_rules = data.get("zone_rules") or []
    return sorted({z["layer"] for z in zone_rules if isinstance(z, dict) and "layer" in z})


def load_ruleset(
    name: str = "default",
    override: dict | None = None,
) -> RuleSet:
    """Load a ruleset by name or path and apply overrides.

    Args:
        name: Ruleset name (without .yaml) or path to a YAML file
        override: Optional merge patch, e.g. {"max_cluster_size": 700}

    Returns:
        RuleSet instance with merged overrides
    """
    path = get_ruleset_path(name)

    with open(path) as f:
        ruleset = RuleSet.from_yaml(f.read())

    if override:
        ruleset = ruleset.merge_override(override)
        logger.debug(f"Applied overrides to ruleset '{name}': {sorted(override)}")

    logger.info(
        f"Loaded ruleset '{name}' with {len(ruleset.zone_rules)} zone rule(s), "
        f"{len(ruleset.disabled_rules)} disabled"
    )
    return ruleset


def validate_ruleset_yaml(yaml_content: str) -> tuple[bool, str | None]:
    """Check that YAML text is a usable ruleset.

    Besides model validation, every id in ``disabled_rules`` must name a
    catalog rule or one of the document's zone rules.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        ruleset = RuleSet.from_yaml(yaml_content)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        return False, str(e)

    known = {d.rule_id for d in ENTITY_RULES + CLUSTER_RULES}
    known.update(z.id for z in ruleset.zone_rules)
    unknown = sorted(set(ruleset.disabled_rules) - known)
    if unknown:
        return False, f"Unknown rule id(s) in disabled_rules: {', '.join(unknown)}"

    return True, None
