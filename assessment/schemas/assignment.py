from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class AssignmentCreate(BaseModel):
    short_identifier: str
    description: Optional[str] = None
    due_at: datetime

    # rule parameters, NoLate when submission_rule_type is missing
    submission_rule_type: Optional[str] = None
    submission_rule_hours: Optional[float] = None
    submission_rule_deduction: Optional[float] = None
    submission_rule_interval: Optional[float] = None


class AssignmentUpdate(BaseModel):
    description: Optional[str] = None
    due_at: Optional[datetime] = None

    # the rule is only replaced when submission_rule_type is given
    submission_rule_type: Optional[str] = None
    submission_rule_hours: Optional[float] = None
    submission_rule_deduction: Optional[float] = None
    submission_rule_interval: Optional[float] = None


class AssignmentRead(BaseModel):
    id: int
    short_identifier: str
    description: Optional[str]
    due_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True
