import logging

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint, event, inspect
from sqlalchemy.orm import Session, relationship

from assessment.core.errors import ConflictOfInterest, InvalidReference
from assessment.db.base_class import Base
from assessment.models.grouping import Grouping
from assessment.models.result import Result

logger = logging.getLogger(__name__)


class PeerReview(Base):
    """Links a reviewer grouping to a result on the reviewee's submission.

    Create these through ``services.peer_reviews.create_peer_review_between``.
    Every flush re-checks the rosters, so a review with overlapping members is
    never written even when callers build the row themselves or repoint
    ``reviewer_id`` / ``result_id`` directly.

    The flush check only guards the roster overlap. Refusing reviewers with no
    members is a pairing decision made by ``able_to_assign``, not a storage
    rule, so an empty reviewer written by hand is accepted here.
    """

    __tablename__ = "peer_reviews"

    id = Column(Integer, primary_key=True, index=True)
    reviewer_id = Column(
        Integer, ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    result_id = Column(
        Integer, ForeignKey("results.id", ondelete="CASCADE"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("reviewer_id", "result_id", name="uq_peer_review_reviewer_result"),
    )

    reviewer = relationship("Grouping", back_populates="peer_reviews")
    result = relationship("Result", back_populates="peer_reviews")

    @property
    def reviewee(self):
        if self.result is None or self.result.submission is None:
            return None
        return self.result.submission.grouping

    @property
    def reviewee_id(self):
        reviewee = self.reviewee
        return reviewee.id if reviewee is not None else None

    def _resolve(self, session, key, fk, model):
        """The row a reference points at, following whichever side was last changed."""
        related = getattr(self, key)
        fk_value = getattr(self, fk)

        state = inspect(self)
        fk_changed = state.attrs[fk].history.has_changes()
        related_changed = state.attrs[key].history.has_changes()

        if related is not None and (related_changed or not fk_changed or related.id == fk_value):
            return related

        if fk_value is None or fk_value <= 0:
            raise InvalidReference(f"peer review has no {key}")
        row = session.get(model, fk_value)
        if row is None:
            raise InvalidReference(f"{key} {fk_value} does not exist")
        return row

    def validate(self, session: Session) -> None:
        from assessment.services.peer_reviews import is_same_unit, shares_members

        reviewer = self._resolve(session, "reviewer", "reviewer_id", Grouping)
        result = self._resolve(session, "result", "result_id", Result)

        submission = result.submission
        reviewee = submission.grouping if submission is not None else None
        if reviewee is None:
            raise InvalidReference("peer review result is not attached to a grouping's submission")

        if is_same_unit(reviewer, reviewee) or shares_members(reviewer, reviewee):
            raise ConflictOfInterest(
                f"grouping {reviewer.id} cannot review grouping {reviewee.id}: "
                "a student would be both reviewer and reviewee"
            )


@event.listens_for(Session, "before_flush")
def _validate_peer_reviews(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, PeerReview) and obj not in session.deleted:
            try:
                obj.validate(session)
            except (ConflictOfInterest, InvalidReference):
                logger.info("Rejected peer review write: reviewer=%s result=%s", obj.reviewer_id, obj.result_id)
                raise
