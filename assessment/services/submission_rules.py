"""
Late submission rules.

Pure functions over a due date, a submission instant and a rule. A rule is a
``RuleVariant`` tag plus an ordered run of periods; periods may be
``PeriodConfig`` values or ``Period`` rows, anything with ``hours_after_due``,
``deduction`` and ``interval_hours`` attributes.

Deductions are percentages of the mark. This module never caps them, callers
that turn a deduction into a mark go through ``penalized_mark``.
"""
import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from assessment.core.config import DEFAULT_RULE_TYPE, MAX_DEDUCTION_PERCENT
from assessment.core.errors import InvalidRuleConfig, UnknownRuleVariant
from assessment.schemas.submission_rule import (
    PenaltyResult,
    PeriodConfig,
    RuleVariant,
    SubmissionRuleConfig,
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _field(period: Any, name: str) -> Any:
    if isinstance(period, Mapping):
        return period.get(name)
    return getattr(period, name, None)


def _as_number(value: Any, field: str, *, required: bool) -> Optional[float]:
    if value is None or value == "":
        if required:
            raise InvalidRuleConfig(f"{field} is required")
        return None

    if isinstance(value, bool):
        raise InvalidRuleConfig(f"{field} must be a number, got {value!r}")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRuleConfig(f"{field} must be a number, got {value!r}") from None

    if math.isnan(number) or math.isinf(number):
        raise InvalidRuleConfig(f"{field} must be finite, got {value!r}")
    return number


def parse_rule_variant(value: Any) -> RuleVariant:
    """Map a rule type string to its variant. Missing means the default (NoLate)."""
    if isinstance(value, RuleVariant):
        return value
    if value is None or value == "":
        return RuleVariant(DEFAULT_RULE_TYPE)

    if isinstance(value, str):
        # accept "GracePeriodSubmissionRule" as well as "GracePeriod"
        name = value.strip().removesuffix("SubmissionRule")
        try:
            return RuleVariant(name)
        except ValueError:
            pass

    raise UnknownRuleVariant(f"unknown submission rule type: {value!r}")


def make_submission_rule(rule_type: Any, periods: Iterable[Any] = ()) -> SubmissionRuleConfig:
    """
    Validate a rule and its periods and freeze them into a ``SubmissionRuleConfig``.

    Raises:
    - UnknownRuleVariant: rule_type is not a known variant
    - InvalidRuleConfig: a number is missing, negative or not a number, a decay
      period has no interval, or offsets do not strictly increase
    """
    variant = parse_rule_variant(rule_type)
    if variant is RuleVariant.NO_LATE:
        return SubmissionRuleConfig()

    checked: list[PeriodConfig] = []
    previous_hours: Optional[float] = None

    for index, period in enumerate(periods):
        label = f"periods[{index}]"

        hours = _as_number(_field(period, "hours_after_due"), f"{label}.hours_after_due", required=True)
        if hours < 0:
            raise InvalidRuleConfig(f"{label}.hours_after_due must be >= 0, got {hours}")

        if previous_hours is not None and hours <= previous_hours:
            raise InvalidRuleConfig(
                f"{label}.hours_after_due must be greater than {previous_hours}, got {hours}"
            )
        previous_hours = hours

        deduction = 0.0
        interval = None

        if variant in (RuleVariant.PENALTY_PERIOD, RuleVariant.PENALTY_DECAY_PERIOD):
            deduction = _as_number(_field(period, "deduction"), f"{label}.deduction", required=False) or 0.0
            if deduction < 0:
                raise InvalidRuleConfig(f"{label}.deduction must be >= 0, got {deduction}")

        if variant is RuleVariant.PENALTY_DECAY_PERIOD:
            interval = _as_number(_field(period, "interval_hours"), f"{label}.interval_hours", required=True)
            if interval <= 0:
                raise InvalidRuleConfig(f"{label}.interval_hours must be > 0, got {interval}")

        checked.append(PeriodConfig(hours_after_due=hours, deduction=deduction, interval_hours=interval))

    return SubmissionRuleConfig(rule_type=variant, periods=tuple(checked))


def build_submission_rule(params: Mapping) -> SubmissionRuleConfig:
    """
    Build a rule from assignment create/update parameters:
    submission_rule_type, submission_rule_hours, submission_rule_deduction,
    submission_rule_interval. A missing type gives a NoLate rule.
    """
    variant = parse_rule_variant(params.get("submission_rule_type"))
    if variant is RuleVariant.NO_LATE:
        return SubmissionRuleConfig()

    period = {
        "hours_after_due": _as_number(
            params.get("submission_rule_hours"), "submission_rule_hours", required=True
        ),
    }

    if variant in (RuleVariant.PENALTY_PERIOD, RuleVariant.PENALTY_DECAY_PERIOD):
        period["deduction"] = params.get("submission_rule_deduction")

    if variant is RuleVariant.PENALTY_DECAY_PERIOD:
        period["interval_hours"] = _as_number(
            params.get("submission_rule_interval"), "submission_rule_interval", required=True
        )

    return make_submission_rule(variant, [period])


# --- evaluation, one function per variant ---


def _evaluate_no_late(due, submitted, hours_late, periods):
    return PenaltyResult(is_late=True, deduction=0.0, collection_time=due, hours_late=hours_late)


def _evaluate_grace_period(due, submitted, hours_late, periods):
    window = periods[-1].hours_after_due
    return PenaltyResult(
        is_late=True,
        deduction=0.0,
        collection_time=due + timedelta(hours=window),
        hours_late=hours_late,
        accepted=hours_late <= window,
    )


def _evaluate_penalty_period(due, submitted, hours_late, periods):
    deduction = 0.0
    for period in periods:
        if period.hours_after_due > hours_late:
            break
        deduction = period.deduction or 0.0

    return PenaltyResult(
        is_late=True, deduction=deduction, collection_time=submitted, hours_late=hours_late
    )


def _evaluate_penalty_decay_period(due, submitted, hours_late, periods):
    total = 0.0
    for index, period in enumerate(periods):
        start = period.hours_after_due
        if start > hours_late:
            break

        end = hours_late
        if index + 1 < len(periods):
            end = min(end, periods[index + 1].hours_after_due)

        deduction = period.deduction or 0.0
        if period.interval_hours:
            # round first so 0.3 / 0.1 counts three intervals, not two
            total += deduction * math.floor(round((end - start) / period.interval_hours, 9))
        else:
            total += deduction

    return PenaltyResult(
        is_late=True, deduction=total, collection_time=submitted, hours_late=hours_late
    )


_EVALUATORS = {
    RuleVariant.NO_LATE: _evaluate_no_late,
    RuleVariant.GRACE_PERIOD: _evaluate_grace_period,
    RuleVariant.PENALTY_PERIOD: _evaluate_penalty_period,
    RuleVariant.PENALTY_DECAY_PERIOD: _evaluate_penalty_decay_period,
}


def _collection_time(due, variant, periods):
    if variant is RuleVariant.GRACE_PERIOD and periods:
        return due + timedelta(hours=periods[-1].hours_after_due)
    return due


def collection_time(due_date: datetime, rule: SubmissionRuleConfig) -> datetime:
    """When submissions for an assignment under ``rule`` are collected."""
    return _collection_time(_as_utc(due_date), rule.rule_type, rule.periods)


def can_collect_now(
    due_date: datetime,
    rule: SubmissionRuleConfig,
    now: Optional[datetime] = None,
) -> bool:
    if now is None:
        now = datetime.now(timezone.utc)
    return _as_utc(now) >= collection_time(due_date, rule)


def evaluate(
    due_date: datetime,
    submitted_at: datetime,
    rule_type: Any,
    periods: Iterable[Any] = (),
) -> PenaltyResult:
    """
    Decide whether a submission is late and what it costs.

    Periods must already be validated and in ascending ``hours_after_due``
    order (``make_submission_rule`` and ``SubmissionRule.periods`` give both).
    Naive datetimes are read as UTC.
    """
    variant = parse_rule_variant(rule_type)
    periods = list(periods)

    due = _as_utc(due_date)
    submitted = _as_utc(submitted_at)

    if submitted <= due:
        return PenaltyResult(
            is_late=False,
            deduction=0.0,
            collection_time=_collection_time(due, variant, periods),
        )

    if not periods:
        variant = RuleVariant.NO_LATE

    hours_late = (submitted - due).total_seconds() / 3600
    return _EVALUATORS[variant](due, submitted, hours_late, periods)


def evaluate_rule(
    due_date: datetime,
    submitted_at: datetime,
    rule: SubmissionRuleConfig,
) -> PenaltyResult:
    return evaluate(due_date, submitted_at, rule.rule_type, rule.periods)


def penalized_mark(raw_mark: float, result: PenaltyResult) -> float:
    """Apply a deduction to a mark, never taking off more than the whole mark."""
    if not result.accepted:
        return 0.0

    deduction = min(result.deduction, MAX_DEDUCTION_PERCENT)
    return max(0.0, round(raw_mark * (1.0 - deduction / 100.0), 2))


def penalty_note(result: PenaltyResult) -> Optional[str]:
    if not result.is_late:
        return None

    if not result.accepted:
        return f"Submitted {result.hours_late:.1f} hour(s) late, after the grace period closed."

    if result.deduction <= 0:
        return None

    applied = min(result.deduction, MAX_DEDUCTION_PERCENT)
    return (
        f"Late penalty applied: -{applied:g}% "
        f"({result.hours_late:.1f} hour(s) late, cap {MAX_DEDUCTION_PERCENT:g}%)."
    )
