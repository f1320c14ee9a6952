from datetime import datetime, timedelta, timezone

import pytest

from assessment.core.errors import InvalidRuleConfig, UnknownRuleVariant
from assessment.schemas.submission_rule import PenaltyResult, RuleVariant
from assessment.services.submission_rules import (
    build_submission_rule,
    can_collect_now,
    collection_time,
    evaluate,
    evaluate_rule,
    make_submission_rule,
    penalized_mark,
    penalty_note,
)

DUE = datetime(2026, 3, 1, 17, 0, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


PENALTY = make_submission_rule(
    "PenaltyPeriod",
    [{"hours_after_due": 1, "deduction": 10}, {"hours_after_due": 3, "deduction": 25}],
)
DECAY = make_submission_rule(
    "PenaltyDecayPeriod",
    [{"hours_after_due": 1, "deduction": 5, "interval_hours": 1}],
)
GRACE = make_submission_rule("GracePeriod", [{"hours_after_due": 24}])
NO_LATE = make_submission_rule("NoLate")


@pytest.mark.parametrize("rule", [NO_LATE, GRACE, PENALTY, DECAY])
@pytest.mark.parametrize("early", [hours(0), hours(1), hours(72)])
def test_on_time_submissions_are_never_penalized(rule, early):
    result = evaluate_rule(DUE, DUE - early, rule)

    assert result.is_late is False
    assert result.deduction == 0
    assert result.accepted is True


def test_penalty_period_uses_last_elapsed_period():
    assert evaluate_rule(DUE, DUE + hours(2), PENALTY).deduction == pytest.approx(10)
    assert evaluate_rule(DUE, DUE + hours(4), PENALTY).deduction == pytest.approx(25)

    # the penalty does not repeat however late the work is
    assert evaluate_rule(DUE, DUE + hours(500), PENALTY).deduction == pytest.approx(25)


def test_penalty_period_before_first_offset_is_late_without_deduction():
    result = evaluate_rule(DUE, DUE + hours(0.5), PENALTY)

    assert result.is_late is True
    assert result.deduction == 0
    assert result.collection_time == DUE + hours(0.5)


def test_penalty_decay_accumulates_per_interval():
    result = evaluate_rule(DUE, DUE + hours(3.5), DECAY)

    assert result.is_late is True
    assert result.deduction == pytest.approx(10)
    assert result.hours_late == pytest.approx(3.5)


def test_penalty_decay_sums_across_periods():
    rule = make_submission_rule(
        "PenaltyDecayPeriod",
        [
            {"hours_after_due": 0, "deduction": 5, "interval_hours": 1},
            {"hours_after_due": 2, "deduction": 10, "interval_hours": 1},
        ],
    )

    # 2 intervals in the first period, 2 full intervals in the second
    assert evaluate_rule(DUE, DUE + hours(4.5), rule).deduction == pytest.approx(30)


def test_penalty_decay_is_not_capped_by_the_engine():
    rule = make_submission_rule(
        "PenaltyDecayPeriod", [{"hours_after_due": 0, "deduction": 30, "interval_hours": 1}]
    )

    result = evaluate_rule(DUE, DUE + hours(10), rule)
    assert result.deduction == pytest.approx(300)
    assert penalized_mark(80, result) == 0.0


def test_grace_period_within_window_is_late_but_free():
    result = evaluate_rule(DUE, DUE + hours(12), GRACE)

    assert result.is_late is True
    assert result.deduction == 0
    assert result.accepted is True
    assert result.collection_time == DUE + hours(24)


def test_grace_period_after_window_is_not_accepted():
    result = evaluate_rule(DUE, DUE + hours(25), GRACE)

    assert result.is_late is True
    assert result.accepted is False
    assert result.collection_time == DUE + hours(24)
    assert penalized_mark(90, result) == 0.0


def test_no_late_rule_only_flags():
    result = evaluate_rule(DUE, DUE + hours(30), NO_LATE)

    assert result.is_late is True
    assert result.deduction == 0
    assert result.collection_time == DUE


def test_empty_periods_behave_as_no_late():
    result = evaluate(DUE, DUE + hours(5), RuleVariant.PENALTY_PERIOD, [])

    assert result.is_late is True
    assert result.deduction == 0
    assert result.accepted is True


def test_naive_datetimes_are_read_as_utc():
    naive_due = DUE.replace(tzinfo=None)

    result = evaluate_rule(naive_due, DUE + hours(2), PENALTY)
    assert result.deduction == pytest.approx(10)


def test_rule_type_accepts_class_style_names():
    rule = make_submission_rule("GracePeriodSubmissionRule", [{"hours_after_due": 2}])
    assert rule.rule_type is RuleVariant.GRACE_PERIOD


def test_unknown_rule_type_fails():
    with pytest.raises(UnknownRuleVariant):
        make_submission_rule("LatePass", [])

    with pytest.raises(UnknownRuleVariant):
        evaluate(DUE, DUE, "LatePass")


@pytest.mark.parametrize(
    "periods",
    [
        [{"hours_after_due": 3, "deduction": 10}, {"hours_after_due": 1, "deduction": 20}],
        [{"hours_after_due": 2, "deduction": 10}, {"hours_after_due": 2, "deduction": 20}],
        [{"hours_after_due": -1, "deduction": 10}],
        [{"hours_after_due": 1, "deduction": -5}],
        [{"deduction": 5}],
    ],
)
def test_bad_periods_fail_at_construction(periods):
    with pytest.raises(InvalidRuleConfig):
        make_submission_rule("PenaltyPeriod", periods)


def test_decay_period_requires_positive_interval():
    with pytest.raises(InvalidRuleConfig):
        make_submission_rule("PenaltyDecayPeriod", [{"hours_after_due": 1, "deduction": 5}])

    with pytest.raises(InvalidRuleConfig):
        make_submission_rule(
            "PenaltyDecayPeriod", [{"hours_after_due": 1, "deduction": 5, "interval_hours": 0}]
        )


def test_build_defaults_to_no_late():
    rule = build_submission_rule({})

    assert rule.rule_type is RuleVariant.NO_LATE
    assert rule.periods == ()


def test_build_penalty_period_from_params():
    rule = build_submission_rule(
        {
            "submission_rule_type": "PenaltyPeriod",
            "submission_rule_hours": "6",
            "submission_rule_deduction": "15",
        }
    )

    assert rule.rule_type is RuleVariant.PENALTY_PERIOD
    assert rule.periods[0].hours_after_due == 6
    assert rule.periods[0].deduction == 15
    assert rule.periods[0].interval_hours is None


def test_build_missing_deduction_defaults_to_zero():
    rule = build_submission_rule({"submission_rule_type": "PenaltyPeriod", "submission_rule_hours": 2})
    assert rule.periods[0].deduction == 0


@pytest.mark.parametrize("rule_type", ["GracePeriod", "PenaltyPeriod", "PenaltyDecayPeriod"])
def test_build_requires_hours(rule_type):
    with pytest.raises(InvalidRuleConfig):
        build_submission_rule(
            {
                "submission_rule_type": rule_type,
                "submission_rule_deduction": 5,
                "submission_rule_interval": 1,
            }
        )


def test_build_rejects_non_numeric_hours():
    with pytest.raises(InvalidRuleConfig):
        build_submission_rule({"submission_rule_type": "GracePeriod", "submission_rule_hours": "soon"})


def test_build_decay_requires_interval():
    with pytest.raises(InvalidRuleConfig):
        build_submission_rule(
            {
                "submission_rule_type": "PenaltyDecayPeriod",
                "submission_rule_hours": 1,
                "submission_rule_deduction": 5,
            }
        )


def test_build_unknown_type():
    with pytest.raises(UnknownRuleVariant):
        build_submission_rule({"submission_rule_type": "Bogus", "submission_rule_hours": 1})


def test_collection_time_and_can_collect_now():
    assert collection_time(DUE, GRACE) == DUE + hours(24)
    assert collection_time(DUE, PENALTY) == DUE

    assert can_collect_now(DUE, GRACE, now=DUE + hours(12)) is False
    assert can_collect_now(DUE, GRACE, now=DUE + hours(24)) is True
    assert can_collect_now(DUE, NO_LATE, now=DUE) is True


def test_penalized_mark_applies_percentage():
    result = evaluate_rule(DUE, DUE + hours(2), PENALTY)

    assert penalized_mark(80, result) == pytest.approx(72.0)


def test_penalty_note():
    on_time = PenaltyResult(is_late=False, deduction=0, collection_time=DUE)
    assert penalty_note(on_time) is None

    note = penalty_note(evaluate_rule(DUE, DUE + hours(4), PENALTY))
    assert note.startswith("Late penalty applied: -25%")

    assert "grace period" in penalty_note(evaluate_rule(DUE, DUE + hours(30), GRACE))
