import os
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from assessment.db.base import Base
from assessment.models.assignment import Assignment
from assessment.models.grouping import Grouping, Membership
from assessment.models.peer_review import PeerReview
from assessment.models.result import Result
from assessment.models.submission import Submission
from assessment.models.submission_rule import Period, SubmissionRule
from assessment.models.user import User

TEST_DB_FILE = "test_assessment.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

DUE = datetime(2026, 3, 1, 17, 0, tzinfo=timezone.utc)

# group name -> student emails; alpha and gamma share student2, "empty" has nobody
ROSTERS = {
    "alpha": ["student1", "student2"],
    "beta": ["student3"],
    "gamma": ["student2", "student4"],
    "delta": ["student5"],
    "empty": [],
}

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Seed one assignment with five groupings, each with an on-time submission."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(PeerReview).delete()
        db.query(Result).delete()
        db.query(Submission).delete()
        db.query(Membership).delete()
        db.query(Grouping).delete()
        db.query(Period).delete()
        db.query(SubmissionRule).delete()
        db.query(Assignment).delete()
        db.query(User).delete()
        db.commit()

        # Users
        students = {
            f"student{n}": User(
                email=f"student{n}@example.com",
                full_name=f"Student {n}",
                role="student",
            )
            for n in range(1, 6)
        }
        db.add_all(students.values())
        db.commit()

        # Assignment, NoLate until a test replaces the rule
        assignment = Assignment(
            short_identifier="A1",
            description="Linked lists",
            due_at=DUE,
            submission_rule=SubmissionRule(rule_type="NoLate"),
        )
        db.add(assignment)
        db.commit()
        db.refresh(assignment)

        # Groupings, added one by one so ids follow ROSTERS order
        for name, members in ROSTERS.items():
            grouping = Grouping(assignment=assignment, group_name=name)
            db.add(grouping)
            db.flush()

            for key in members:
                db.add(Membership(grouping=grouping, student=students[key]))

            db.add(
                Submission(
                    assignment=assignment,
                    grouping=grouping,
                    content=f"{name} solution",
                    submitted_at=DUE - timedelta(hours=1),
                )
            )
        db.commit()

        yield
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def assignment(db):
    return db.query(Assignment).filter(Assignment.short_identifier == "A1").one()


@pytest.fixture()
def groups(db):
    """Groupings of the seeded assignment keyed by group name."""
    return {g.group_name: g for g in db.query(Grouping).all()}
