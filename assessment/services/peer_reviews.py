"""
Peer review pairing.

A grouping may review another grouping when the two share no student and no
review already runs in that direction. ``create_peer_review_between`` is the
only way reviews are made; it returns None when the pair is not allowed, which
is a normal outcome and not an error.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from assessment.core.config import INCOMPLETE
from assessment.core.errors import InvalidReference
from assessment.models.grouping import Grouping
from assessment.models.peer_review import PeerReview
from assessment.models.result import Result

logger = logging.getLogger(__name__)


def shares_members(a, b) -> bool:
    return bool(a.member_student_ids & b.member_student_ids)


def is_same_unit(a, b) -> bool:
    if a is b:
        return True
    return a.id is not None and a.id == b.id


def get_peer_review_for(db: Session, reviewer: Grouping, reviewee: Grouping) -> Optional[PeerReview]:
    """The review ``reviewer`` holds on ``reviewee``'s current submission, if any."""
    submission = reviewee.current_submission
    if submission is None or reviewer.id is None:
        return None

    return (
        db.query(PeerReview)
        .join(Result, PeerReview.result_id == Result.id)
        .filter(
            Result.submission_id == submission.id,
            PeerReview.reviewer_id == reviewer.id,
        )
        .first()
    )


def review_exists_between(db: Session, reviewer: Grouping, reviewee: Grouping) -> bool:
    return get_peer_review_for(db, reviewer, reviewee) is not None


def able_to_assign(db: Session, reviewer: Grouping, reviewee: Grouping) -> bool:
    """
    Whether ``reviewer`` may be given a review of ``reviewee``.

    Directional: once a->b exists this is False for (a, b) but may still be
    True for (b, a).
    """
    if is_same_unit(reviewer, reviewee):
        return False
    # nobody to do the reviewing
    if not reviewer.member_student_ids:
        return False
    if shares_members(reviewer, reviewee):
        return False
    return not review_exists_between(db, reviewer, reviewee)


def create_peer_review_between(db: Session, reviewer: Grouping, reviewee: Grouping) -> Optional[PeerReview]:
    """
    Pair ``reviewer`` with ``reviewee``.

    Returns the new PeerReview, or None (with nothing written) when the pair
    cannot be assigned. The Result and the PeerReview are committed together;
    if either write fails both are rolled back.

    Raises:
    - InvalidReference: reviewee has no submission to review
    - ConflictOfInterest: raised by the flush check if the rosters changed
      underneath us
    """
    if not able_to_assign(db, reviewer, reviewee):
        logger.info("Peer review not assignable: reviewer=%s reviewee=%s", reviewer.id, reviewee.id)
        return None

    submission = reviewee.current_submission
    if submission is None:
        raise InvalidReference(f"grouping {reviewee.id} has no submission to review")

    result = Result(submission=submission, marking_state=INCOMPLETE)
    peer_review = PeerReview(reviewer=reviewer, result=result)
    db.add_all([result, peer_review])

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(peer_review)
    logger.info(
        "Created peer review %s: reviewer=%s reviewee=%s result=%s",
        peer_review.id,
        reviewer.id,
        reviewee.id,
        peer_review.result_id,
    )
    return peer_review


def reviews_by(db: Session, reviewer: Grouping) -> list[PeerReview]:
    return (
        db.query(PeerReview)
        .filter(PeerReview.reviewer_id == reviewer.id)
        .order_by(PeerReview.id.asc())
        .all()
    )


def assign_peer_reviews(
    db: Session,
    reviewers: Iterable[Grouping],
    reviewees: Iterable[Grouping],
    per_reviewer: int,
) -> list[PeerReview]:
    """
    Give every reviewer up to ``per_reviewer`` reviews among ``reviewees``.

    Deterministic: both sides are ordered by id and reviewer i walks the
    reviewees starting at offset i, so the same rosters always give the same
    pairs and the load spreads across reviewees. Existing reviews count toward
    the quota.
    """
    if per_reviewer < 0:
        raise ValueError("per_reviewer must be >= 0")

    reviewers = sorted(reviewers, key=lambda g: g.id)
    reviewees = sorted(reviewees, key=lambda g: g.id)
    created: list[PeerReview] = []

    if not reviewees:
        return created

    for i, reviewer in enumerate(reviewers):
        have = sum(1 for r in reviewees if review_exists_between(db, reviewer, r))

        for step in range(len(reviewees)):
            if have >= per_reviewer:
                break
            candidate = reviewees[(i + step) % len(reviewees)]
            if candidate.current_submission is None:
                continue

            peer_review = create_peer_review_between(db, reviewer, candidate)
            if peer_review is not None:
                created.append(peer_review)
                have += 1

        if have < per_reviewer:
            logger.warning(
                "Reviewer %s has %s of %s peer reviews; no other grouping can be assigned",
                reviewer.id,
                have,
                per_reviewer,
            )

    return created


def unassign_peer_review(db: Session, peer_review: PeerReview) -> None:
    """Remove a peer review together with its result."""
    result = peer_review.result
    peer_review_id = peer_review.id

    try:
        if result is not None:
            db.delete(result)
        else:
            db.delete(peer_review)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Removed peer review %s", peer_review_id)
