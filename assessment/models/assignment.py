from sqlalchemy import Column, Integer, String, Text, DateTime, func
from sqlalchemy.orm import relationship

from assessment.db.base_class import Base

class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)

    short_identifier = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # exactly one rule per assignment; orphaned rules are deleted with their periods
    submission_rule = relationship(
        "SubmissionRule",
        back_populates="assignment",
        uselist=False,
        cascade="all, delete-orphan",
    )

    groupings = relationship("Grouping", back_populates="assignment", cascade="all, delete-orphan")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
