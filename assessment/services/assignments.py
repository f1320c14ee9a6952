import logging

from sqlalchemy.orm import Session

from assessment.core.errors import InvalidReference
from assessment.models.assignment import Assignment
from assessment.models.submission_rule import Period, SubmissionRule
from assessment.schemas.assignment import AssignmentCreate, AssignmentUpdate
from assessment.schemas.submission_rule import SubmissionRuleConfig
from assessment.services.submission_rules import build_submission_rule

logger = logging.getLogger(__name__)


def _rule_params(payload) -> dict:
    return payload.model_dump(
        include={
            "submission_rule_type",
            "submission_rule_hours",
            "submission_rule_deduction",
            "submission_rule_interval",
        }
    )


def _to_record(rule: SubmissionRuleConfig) -> SubmissionRule:
    return SubmissionRule(
        rule_type=rule.rule_type.value,
        periods=[
            Period(
                hours_after_due=p.hours_after_due,
                deduction=p.deduction,
                interval_hours=p.interval_hours,
            )
            for p in rule.periods
        ],
    )


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise InvalidReference(f"Assignment {assignment_id} not found")
    return a


def create_assignment(db: Session, payload: AssignmentCreate) -> Assignment:
    # build (and validate) the rule before anything touches the session
    rule = build_submission_rule(_rule_params(payload))

    a = Assignment(
        short_identifier=payload.short_identifier,
        description=payload.description,
        due_at=payload.due_at,
        submission_rule=_to_record(rule),
    )
    db.add(a)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    logger.info("Created assignment %s with %s rule", a.short_identifier, rule.rule_type.value)
    return a


def replace_submission_rule(
    db: Session,
    assignment: Assignment,
    rule: SubmissionRuleConfig,
) -> SubmissionRule:
    """
    Swap the assignment's rule for ``rule`` in one transaction.

    The old rule and its periods are deleted and flushed before the new rule is
    attached, so the one-rule-per-assignment constraint never sees two rows.
    """
    old = assignment.submission_rule
    old_type = old.rule_type if old is not None else None

    try:
        if old is not None:
            assignment.submission_rule = None
            db.flush()

        assignment.submission_rule = _to_record(rule)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(assignment)
    logger.info(
        "Replaced submission rule on assignment %s: %s -> %s",
        assignment.id,
        old_type,
        rule.rule_type.value,
    )
    return assignment.submission_rule


def update_assignment(db: Session, assignment_id: int, payload: AssignmentUpdate) -> Assignment:
    a = get_assignment(db, assignment_id)

    # a bad rule fails here, before any field is changed
    rule = None
    if payload.submission_rule_type is not None:
        rule = build_submission_rule(_rule_params(payload))

    if payload.description is not None:
        a.description = payload.description
    if payload.due_at is not None:
        a.due_at = payload.due_at

    if rule is not None:
        replace_submission_rule(db, a, rule)
        return a

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    return a
