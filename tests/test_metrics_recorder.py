from datetime import timedelta

import pytest

from app.core.clock import utcnow
from app.core.errors import ErrorKind, InvalidArgumentError
from app.services.metrics_recorder import MetricsRecorder


@pytest.fixture
def recorder(db):
    return MetricsRecorder(db)


@pytest.fixture
def funnel(db, recorder, make_user, make_report):
    report = make_report(make_user())
    metrics = recorder.start(report.id)
    db.commit()
    return metrics


def _age(db, metrics, hours):
    metrics.token_generated_at = utcnow() - timedelta(hours=hours, minutes=10)
    db.commit()


def test_stamp_sets_timestamp(recorder, funnel):
    metrics = recorder.stamp(funnel.report_id, "token_sent_at")
    assert metrics.token_sent_at is not None


def test_stamp_accepts_camel_case_names(recorder, funnel):
    metrics = recorder.stamp(funnel.report_id, "linkClickedAt")
    assert metrics.link_clicked_at is not None


def test_stamp_does_not_overwrite(recorder, funnel):
    first = recorder.stamp(funnel.report_id, "feedback_started_at").feedback_started_at
    second = recorder.stamp(funnel.report_id, "feedback_started_at").feedback_started_at
    assert first == second


def test_time_to_click_computed_once(db, recorder, funnel):
    _age(db, funnel, 5)
    metrics = recorder.stamp(funnel.report_id, "linkClickedAt")
    assert metrics.time_to_click_hours == 5

    _age(db, funnel, 30)
    metrics = recorder.stamp(funnel.report_id, "linkClickedAt")
    assert metrics.time_to_click_hours == 5


def test_time_to_complete_computed_once(db, recorder, funnel):
    _age(db, funnel, 49)
    metrics = recorder.stamp(funnel.report_id, "feedback_completed_at")
    assert metrics.time_to_complete_hours == 49
    assert metrics.time_to_click_hours is None

    _age(db, funnel, 100)
    assert recorder.stamp(funnel.report_id, "feedback_completed_at").time_to_complete_hours == 49


def test_durations_truncate_to_whole_hours(db, recorder, funnel):
    funnel.token_generated_at = utcnow() - timedelta(minutes=59)
    db.commit()
    assert recorder.stamp(funnel.report_id, "link_clicked_at").time_to_click_hours == 0


@pytest.mark.parametrize("field", [
    "token_generated_at",
    "time_to_click_hours",
    "used_at",
    "link_clicked_at = NULL; --",
    "",
])
def test_stamp_rejects_unknown_fields(recorder, funnel, field):
    with pytest.raises(InvalidArgumentError) as exc_info:
        recorder.stamp(funnel.report_id, field)
    assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT


def test_stamp_without_funnel_returns_none(recorder):
    assert recorder.stamp(424242, "token_sent_at") is None


def test_start_resets_existing_funnel(db, recorder, funnel):
    recorder.stamp(funnel.report_id, "link_clicked_at")
    metrics = recorder.start(funnel.report_id)
    db.commit()

    assert metrics.id == funnel.id
    assert metrics.link_clicked_at is None
    assert metrics.time_to_click_hours is None
