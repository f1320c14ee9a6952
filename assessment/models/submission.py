from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from assessment.db.base_class import Base

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    grouping_id = Column(Integer, ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "grouping_id", name="uq_submission_assignment_grouping"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    grouping = relationship("Grouping", back_populates="submissions")

    results = relationship("Result", back_populates="submission", cascade="all, delete-orphan")
