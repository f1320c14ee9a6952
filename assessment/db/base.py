from assessment.db.base_class import Base  # noqa: F401

# import models so SQLAlchemy registers them on Base.metadata
from assessment.models import (  # noqa: F401
    assignment,
    grouping,
    peer_review,
    result,
    submission,
    submission_rule,
    user,
)
