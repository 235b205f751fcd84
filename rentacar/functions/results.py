"""
Outcome of a stage run.

A stage either raises (parse/construction error, left to the queue for
redelivery) or returns a StageResult. Store writes and email sends are
best-effort and end up in ``effects`` instead of raising.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

APPLIED = "applied"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class EffectOutcome:
    effect: str
    status: str
    error: Optional[str] = None


@dataclass
class StageResult:
    record: BaseModel
    output: BaseModel
    effects: List[EffectOutcome] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return any(e.status == FAILED for e in self.effects)

    def effect(self, name: str) -> Optional[EffectOutcome]:
        for outcome in self.effects:
            if outcome.effect == name:
                return outcome
        return None


def run_effect(name: str, action: Callable[[], bool], failure_message: str) -> EffectOutcome:
    """
    Run a best-effort side effect.

    ``action`` returns True when applied and False when the capability is
    disabled. Exceptions are logged and recorded, never raised.
    """
    try:
        applied = action()
    except Exception as e:
        logger.warning(f"{failure_message}: {e}")
        return EffectOutcome(effect=name, status=FAILED, error=str(e))
    return EffectOutcome(effect=name, status=APPLIED if applied else SKIPPED)
