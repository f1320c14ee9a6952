from assessment.models.assignment import Assignment  # noqa: F401
from assessment.models.grouping import Grouping, Membership  # noqa: F401
from assessment.models.peer_review import PeerReview  # noqa: F401
from assessment.models.result import Result  # noqa: F401
from assessment.models.submission import Submission  # noqa: F401
from assessment.models.submission_rule import Period, SubmissionRule  # noqa: F401
from assessment.models.user import User  # noqa: F401
