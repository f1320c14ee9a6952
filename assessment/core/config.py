# Late submission rules
DEFAULT_RULE_TYPE = "NoLate"  # used when an assignment is created without a rule type
MAX_DEDUCTION_PERCENT = 100.0  # callers never deduct more than the full mark

# Result marking states
INCOMPLETE = "incomplete"
COMPLETE = "complete"
MARKING_STATES = (INCOMPLETE, COMPLETE)
