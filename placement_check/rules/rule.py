"""Severity-tagged placement rules and their verdicts."""

from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple, Optional, Union

import structlog
from shapely.errors import ShapelyError

from ..models.entity import PlacementEntity
from ..models.severity import Severity

logger = structlog.get_logger(__name__)


class Outcome(NamedTuple):
    """Condition result that can replace the rule's default messages."""

    triggered: bool
    message: Optional[str] = None
    short_message: Optional[str] = None


Condition = Callable[[PlacementEntity], Union[bool, Outcome]]


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating one rule against one entity."""

    rule_id: str
    triggered: bool
    severity: Severity
    short_message: str
    message: str

    @property
    def level(self) -> str:
        return self.severity.level

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "triggered": self.triggered,
            "severity": int(self.severity),
            "level": self.level,
            "short_message": self.short_message,
            "message": self.message,
        }


def sort_triggered(verdicts: Iterable[Verdict]) -> list[Verdict]:
    """Triggered verdicts, worst severity first, stable for equal severities."""
    return sorted((v for v in verdicts if v.triggered), key=lambda v: v.severity, reverse=True)


def worst_severity(verdicts: Iterable[Verdict]) -> Severity:
    triggered = sort_triggered(verdicts)
    return triggered[0].severity if triggered else Severity.NONE


class Rule:
    """A named predicate over a single entity.

    The condition reads the entity (and whatever reference data it closed
    over) and must not modify either. The rule remembers the outcome of its
    last evaluation; ``severity`` reads as NONE while not triggered.
    """

    def __init__(
        self,
        rule_id: str,
        severity: Severity,
        short_message: str,
        message: str,
        condition: Condition,
    ):
        self.rule_id = rule_id
        self.configured_severity = Severity(severity)
        self.short_message = short_message
        self.message = message
        self._condition = condition
        self._triggered = False

    @property
    def triggered(self) -> bool:
        return self._triggered

    @property
    def severity(self) -> Severity:
        return self.configured_severity if self._triggered else Severity.NONE

    def evaluate(self, entity: PlacementEntity) -> Verdict:
        """Run the condition and record whether it triggered.

        Geometry errors inside the condition count as not triggered.
        """
        try:
            outcome = self._condition(entity)
        except (ShapelyError, ValueError) as e:
            logger.warning(
                "rule_evaluation_failed",
                rule_id=self.rule_id,
                entity_id=entity.id,
                error=str(e),
            )
            outcome = Outcome(False)

        if not isinstance(outcome, Outcome):
            outcome = Outcome(bool(outcome))

        self._triggered = bool(outcome.triggered)
        return Verdict(
            rule_id=self.rule_id,
            triggered=self._triggered,
            severity=self.severity,
            short_message=outcome.short_message or self.short_message,
            message=outcome.message or self.message,
        )

    def __repr__(self) -> str:
        return (
            f"Rule({self.rule_id!r}, severity={self.configured_severity.name}, "
            f"triggered={self._triggered})"
        )
