from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from assessment.db.base_class import Base


class Grouping(Base):
    """A group of students working on one assignment. Reviews and is reviewed as a unit."""

    __tablename__ = "groupings"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_name = Column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "group_name", name="uq_groupings_assignment_name"),
    )

    assignment = relationship("Assignment", back_populates="groupings")

    memberships = relationship(
        "Membership", back_populates="grouping", cascade="all, delete-orphan"
    )
    submissions = relationship(
        "Submission", back_populates="grouping", cascade="all, delete-orphan"
    )

    # reviews this grouping performs; removed along with the reviewer
    peer_reviews = relationship(
        "PeerReview", back_populates="reviewer", cascade="all, delete"
    )

    @property
    def member_student_ids(self) -> set[int]:
        return {m.student_id for m in self.memberships}

    @property
    def current_submission(self):
        if not self.submissions:
            return None
        return max(self.submissions, key=lambda s: s.id or 0)


class Membership(Base):
    __tablename__ = "memberships"

    id = Column(Integer, primary_key=True, index=True)
    grouping_id = Column(
        Integer, ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("grouping_id", "student_id", name="uq_memberships_grouping_student"),
    )

    grouping = relationship("Grouping", back_populates="memberships")
    student = relationship("User", back_populates="memberships")
