"""Display summaries of rule verdicts for the map editor.

Provides compact vs full summary modes. Compact mode (default) returns what
the on-screen indicator and the popup need. Full mode adds every verdict,
including rules that did not trigger.
"""

from typing import Any, Literal

from .models.entity import PlacementEntity
from .models.severity import Severity
from .rules.rule import Verdict, sort_triggered, worst_severity

# Type alias for detail level parameter
DetailLevel = Literal["compact", "full"]


def onscreen_text(area: float, verdicts: list[Verdict]) -> str:
    """Text for the small indicator shown while editing.

    Shows the short message of a high severity issue if there is one,
    otherwise the current area.
    """
    for verdict in sort_triggered(verdicts):
        if verdict.severity >= Severity.HIGH:
            return verdict.short_message
    return f"{round(area)}m²"


def issue_lines(verdicts: list[Verdict]) -> list[dict[str, str]]:
    """Popup lines for triggered rules, classed as error, warning or info."""
    return [
        {"level": v.level, "message": v.message}
        for v in sort_triggered(verdicts)
    ]


def entity_summary(
    entity: PlacementEntity,
    verdicts: list[Verdict],
    detail_level: DetailLevel = "compact",
) -> dict[str, Any]:
    """Summarize an entity and its verdicts.

    Args:
        entity: The checked entity
        verdicts: Verdicts from the latest check of this entity
        detail_level: "compact" for display fields, "full" for all verdicts

    Returns:
        Summary dictionary
    """
    worst = worst_severity(verdicts)
    summary: dict[str, Any] = {
        "id": entity.id,
        "area": round(entity.area),
        "calculated_area_needed": round(entity.calculated_area_needed),
        "worst_severity": int(worst),
        "worst_level": worst.level,
        "onscreen": onscreen_text(entity.area, verdicts),
        "issues": issue_lines(verdicts),
    }
    if detail_level == "full":
        summary["name"] = entity.name
        summary["power_need"] = entity.power_need
        summary["verdicts"] = [v.to_dict() for v in verdicts]
    return summary
