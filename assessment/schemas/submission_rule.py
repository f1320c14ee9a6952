from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class RuleVariant(str, Enum):
    NO_LATE = "NoLate"
    GRACE_PERIOD = "GracePeriod"
    PENALTY_PERIOD = "PenaltyPeriod"
    PENALTY_DECAY_PERIOD = "PenaltyDecayPeriod"


class PeriodConfig(BaseModel):
    hours_after_due: float
    deduction: Optional[float] = 0.0
    interval_hours: Optional[float] = None

    class Config:
        frozen = True


class SubmissionRuleConfig(BaseModel):
    rule_type: RuleVariant = RuleVariant.NO_LATE
    periods: tuple[PeriodConfig, ...] = ()

    class Config:
        frozen = True


class PenaltyResult(BaseModel):
    is_late: bool
    deduction: float  # percent of the mark
    collection_time: datetime
    hours_late: float = 0.0
    accepted: bool = True  # False once a grace window has closed

    class Config:
        frozen = True
