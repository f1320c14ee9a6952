from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from assessment.core.config import DEFAULT_RULE_TYPE
from assessment.db.base_class import Base


class SubmissionRule(Base):
    __tablename__ = "submission_rules"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(
        Integer,
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    rule_type = Column(String(50), nullable=False, default=DEFAULT_RULE_TYPE)

    assignment = relationship("Assignment", back_populates="submission_rule")

    periods = relationship(
        "Period",
        back_populates="submission_rule",
        cascade="all, delete-orphan",
        order_by="Period.hours_after_due",
    )

    def to_config(self):
        from assessment.services.submission_rules import make_submission_rule

        return make_submission_rule(self.rule_type, self.periods)

    def evaluate(self, submitted_at):
        """Penalty for a submission made at ``submitted_at`` against this rule's assignment."""
        from assessment.services.submission_rules import evaluate

        return evaluate(self.assignment.due_at, submitted_at, self.rule_type, self.periods)


class Period(Base):
    __tablename__ = "periods"

    id = Column(Integer, primary_key=True, index=True)
    submission_rule_id = Column(
        Integer,
        ForeignKey("submission_rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    hours_after_due = Column(Float, nullable=False)
    deduction = Column(Float, nullable=True, default=0.0)
    interval_hours = Column(Float, nullable=True)

    submission_rule = relationship("SubmissionRule", back_populates="periods")
