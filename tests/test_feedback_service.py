from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from app.core.context import RequestContext
from app.models import Feedback, FeedbackMetrics, FeedbackToken
from app.schemas.feedback import FeedbackSubmit
from app.services.feedback_service import FeedbackService
from app.services.feedback_token_service import FeedbackTokenService


@pytest.fixture
def issued(db, test_settings, make_user, make_report):
    owner = make_user()
    report = make_report(owner)
    return FeedbackTokenService(db, test_settings).issue(report.id, owner.id)


@pytest.fixture
def ctx():
    return RequestContext(ip_address="203.0.113.20", user_agent="Firefox")


def test_submit_stores_feedback_and_consumes_token(db, test_settings, issued, ctx):
    service = FeedbackService(db, test_settings)
    payload = FeedbackSubmit(
        token=issued.secret,
        overall_rating=4,
        communication_rating=5,
        would_recommend="yes",
        comments="Quick response",
    )

    feedback = service.submit(payload, ctx)

    assert feedback is not None
    assert feedback.token_id == issued.id
    assert feedback.overall_rating == 4
    assert feedback.ip_address == "203.0.113.20"
    assert db.get(FeedbackToken, issued.id).used_at is not None

    metrics = db.query(FeedbackMetrics).one()
    assert metrics.link_clicked_at is not None
    assert metrics.feedback_started_at is not None
    assert metrics.feedback_completed_at is not None
    assert metrics.time_to_complete_hours == 0


def test_submit_twice_only_first_counts(db, test_settings, issued, ctx):
    service = FeedbackService(db, test_settings)
    payload = FeedbackSubmit(token=issued.secret, overall_rating=5)

    assert service.submit(payload, ctx) is not None
    assert service.submit(payload, ctx) is None
    assert db.query(Feedback).count() == 1


def test_submit_with_unknown_token(db, test_settings, ctx):
    payload = FeedbackSubmit(token="deadbeef" * 8, overall_rating=3)
    assert FeedbackService(db, test_settings).submit(payload, ctx) is None
    assert db.query(Feedback).count() == 0


def test_failed_save_leaves_token_usable(db, test_settings, issued, ctx, monkeypatch):
    service = FeedbackService(db, test_settings)
    payload = FeedbackSubmit(token=issued.secret, overall_rating=2)

    def broken_commit():
        raise OperationalError("INSERT INTO feedback", {}, Exception("disk full"))

    real_commit = db.commit
    calls = {"n": 0}

    def commit_failing_on_feedback():
        # validate() commits the click stamp, feedback_started_at commits next; fail the third
        calls["n"] += 1
        if calls["n"] == 3:
            broken_commit()
        real_commit()

    monkeypatch.setattr(db, "commit", commit_failing_on_feedback)
    with pytest.raises(OperationalError):
        service.submit(payload, ctx)
    monkeypatch.setattr(db, "commit", real_commit)

    assert db.get(FeedbackToken, issued.id).used_at is None
    assert FeedbackService(db, test_settings).submit(payload, ctx) is not None


def test_unconsumed_token_after_save_does_not_fail_submission(db, test_settings, issued, ctx, monkeypatch):
    service = FeedbackService(db, test_settings)
    payload = FeedbackSubmit(token=issued.secret, overall_rating=4)

    def broken_mark_used(secret):
        raise OperationalError("UPDATE feedback_tokens", {}, Exception("database is locked"))

    monkeypatch.setattr(service.tokens, "mark_used", broken_mark_used)
    feedback = service.submit(payload, ctx)

    assert feedback is not None
    assert feedback.overall_rating == 4
    assert db.query(Feedback).count() == 1
    assert db.get(FeedbackToken, issued.id).used_at is None


def test_retry_after_unconsumed_token_does_not_duplicate(db, test_settings, issued, ctx, monkeypatch):
    service = FeedbackService(db, test_settings)
    payload = FeedbackSubmit(token=issued.secret, overall_rating=4)

    def broken_mark_used(secret):
        raise OperationalError("UPDATE feedback_tokens", {}, Exception("database is locked"))

    monkeypatch.setattr(service.tokens, "mark_used", broken_mark_used)
    service.submit(payload, ctx)
    monkeypatch.undo()

    assert FeedbackService(db, test_settings).submit(payload, ctx) is None
    assert db.query(Feedback).count() == 1
    assert db.get(FeedbackToken, issued.id).used_at is not None


@pytest.fixture
def add_feedback(db, make_user, make_report):
    owner = make_user()
    report = make_report(owner)

    def _add_feedback(rating, submitted_at):
        feedback = Feedback(
            report_id=report.id,
            user_id=owner.id,
            overall_rating=rating,
            submitted_at=submitted_at,
        )
        db.add(feedback)
        db.commit()
        return feedback

    return _add_feedback


def test_analytics_without_feedback(db, test_settings):
    analytics = FeedbackService(db, test_settings).get_analytics()

    assert analytics.avg_rating == 0
    assert analytics.total_feedback == 0
    assert analytics.rating_distribution == {}
    assert analytics.monthly_trends == []


def test_analytics_aggregates_ratings(db, test_settings, add_feedback):
    add_feedback(5, datetime(2026, 10, 3))
    add_feedback(5, datetime(2026, 10, 15))
    add_feedback(4, datetime(2026, 10, 10))
    add_feedback(2, datetime(2026, 8, 15))
    add_feedback(3, datetime(2026, 5, 1))
    add_feedback(1, datetime(2026, 4, 30, 23, 59))

    analytics = FeedbackService(db, test_settings).get_analytics(now=datetime(2026, 10, 19, 12))

    assert analytics.total_feedback == 6
    assert analytics.avg_rating == 3.33
    assert analytics.rating_distribution == {1: 1, 2: 1, 3: 1, 4: 1, 5: 2}
    # April falls outside the six-month window
    assert [(t.month, t.count, t.avg_rating) for t in analytics.monthly_trends] == [
        ("2026-05", 1, 3.0),
        ("2026-08", 1, 2.0),
        ("2026-10", 3, 4.67),
    ]


def test_trend_window_crosses_year_boundary(db, test_settings, add_feedback):
    add_feedback(4, datetime(2025, 9, 1))
    add_feedback(2, datetime(2025, 8, 31))

    analytics = FeedbackService(db, test_settings).get_analytics(now=datetime(2026, 2, 10))

    assert [t.month for t in analytics.monthly_trends] == ["2025-09"]


def test_list_feedback_newest_first(db, test_settings, add_feedback):
    oldest = add_feedback(3, datetime(2026, 1, 1))
    middle = add_feedback(4, datetime(2026, 2, 1))
    newest = add_feedback(5, datetime(2026, 3, 1))
    service = FeedbackService(db, test_settings)

    total, items = service.list_feedback(page=1, per_page=2)
    assert total == 3
    assert [f.id for f in items] == [newest.id, middle.id]

    total, items = service.list_feedback(page=2, per_page=2)
    assert [f.id for f in items] == [oldest.id]
