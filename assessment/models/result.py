from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship, validates

from assessment.core.config import INCOMPLETE, MARKING_STATES
from assessment.db.base_class import Base


class Result(Base):
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )

    marking_state = Column(String(20), nullable=False, default=INCOMPLETE)

    # Grading fields (nullable until marked)
    total_mark = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    submission = relationship("Submission", back_populates="results")

    peer_reviews = relationship(
        "PeerReview", back_populates="result", cascade="all, delete"
    )

    @validates("marking_state")
    def _check_marking_state(self, key, value):
        if value not in MARKING_STATES:
            raise ValueError(f"marking_state must be one of {MARKING_STATES}, got {value!r}")
        return value
