import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from assessment.core.config import COMPLETE
from assessment.core.errors import InvalidReference
from assessment.models.result import Result
from assessment.schemas.submission_rule import PenaltyResult
from assessment.services.submission_rules import evaluate, penalized_mark, penalty_note

logger = logging.getLogger(__name__)


def late_penalty_for(result: Result) -> PenaltyResult:
    """Evaluate the assignment's rule at the time the result's submission came in."""
    submission = result.submission
    if submission is None:
        raise InvalidReference(f"result {result.id} has no submission")

    assignment = submission.assignment
    rule = assignment.submission_rule
    if rule is None:
        return evaluate(assignment.due_at, submission.submitted_at, None)

    return rule.evaluate(submission.submitted_at)


def complete_result(
    db: Session,
    result: Result,
    raw_mark: float,
    feedback: Optional[str] = None,
) -> Result:
    if raw_mark < 0:
        raise ValueError("raw_mark must be >= 0")

    penalty = late_penalty_for(result)
    result.total_mark = penalized_mark(raw_mark, penalty)

    # add/merge feedback note if late
    note = penalty_note(penalty)
    if feedback and note:
        result.feedback = feedback + "\n" + note
    elif feedback:
        result.feedback = feedback
    else:
        result.feedback = note

    result.marking_state = COMPLETE
    result.graded_at = datetime.now(timezone.utc)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(result)
    logger.info(
        "Completed result %s: raw=%s final=%s deduction=%s%%",
        result.id,
        raw_mark,
        result.total_mark,
        penalty.deduction,
    )
    return result
