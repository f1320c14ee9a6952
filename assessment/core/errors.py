class AssessmentError(Exception):
    """Base class for errors raised by the rule and pairing engines."""


class InvalidRuleConfig(AssessmentError):
    """A submission rule or one of its periods has bad or missing numbers."""


class UnknownRuleVariant(AssessmentError):
    """The requested submission rule type is not one we know how to build."""


class ConflictOfInterest(AssessmentError):
    """A reviewer grouping shares a student with the grouping it reviews."""


class InvalidReference(AssessmentError):
    """A reviewer, result, submission or assignment reference does not resolve."""
