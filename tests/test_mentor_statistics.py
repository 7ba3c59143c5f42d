from __future__ import annotations

import pytest
from fastapi import HTTPException

from mentorhub.api.admin import approve_mentor, get_dashboard_stats, recompute_mentor_statistics
from mentorhub.models.rating import MentorStatistics, Rating
from mentorhub.models.session import SessionLog
from mentorhub.scripts import update_mentor_stats
from mentorhub.services import stats_service
from mentorhub.utils.errors import DependencyFailure
from mentorhub.utils.security import require_role
from mentorhub.utils.timeutils import utcnow


def _rate(db, session, stars):
    db.add(Rating(
        session_id=session.id,
        mentee_id=session.mentee_id,
        mentor_id=session.mentor_id,
        rating=stars,
    ))
    db.commit()


def _log(db, session, minutes):
    db.add(SessionLog(
        session_id=session.id,
        mentee_id=session.mentee_id,
        mentor_id=session.mentor_id,
        duration=minutes,
        date=utcnow(),
    ))
    db.commit()


def test_average_from_distribution_rounds_half_up():
    assert stats_service.average_from_distribution({"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}) == 0.0
    # 4.25 must round up to 4.3
    assert stats_service.average_from_distribution({"3": 1, "4": 1, "5": 2}) == 4.3
    assert stats_service.average_from_distribution({"4": 3, "5": 1}) == 4.3
    assert stats_service.average_from_distribution({"2": 1, "3": 1}) == 2.5


def test_compute_counts_completed_mentees_and_all_logged_minutes(
    db_session, mentee, mentor, make_user, make_session
):
    second_mentee = make_user("mentee")
    first = make_session(mentee, mentor, status="completed")
    repeat = make_session(mentee, mentor, status="completed")
    pending = make_session(second_mentee, mentor, status="pending_rating")
    for session, minutes in ((first, 30), (repeat, 15), (pending, 20)):
        _log(db_session, session, minutes)
    _rate(db_session, first, 5)
    _rate(db_session, repeat, 3)

    stats = stats_service.compute_mentor_statistics(db_session, mentor.id)

    assert stats["students_helped"] == 1
    assert stats["total_minutes"] == 65
    assert stats["total_ratings"] == 2
    assert stats["average_rating"] == 4.0
    assert stats["rating_distribution"] == {"1": 0, "2": 0, "3": 1, "4": 0, "5": 1}


def test_recompute_is_idempotent(db_session, mentee, mentor, make_session):
    session = make_session(mentee, mentor, status="completed")
    _log(db_session, session, 42)
    _rate(db_session, session, 4)

    first = stats_service.statistics_to_dict(stats_service.recompute_mentor_statistics(db_session, mentor.id))
    db_session.commit()
    second = stats_service.statistics_to_dict(stats_service.recompute_mentor_statistics(db_session, mentor.id))
    db_session.commit()

    first.pop("last_updated")
    second.pop("last_updated")
    assert first == second
    assert db_session.query(MentorStatistics).filter_by(mentor_id=mentor.id).count() == 1


def test_refresh_failure_returns_none(db_session, mentor, monkeypatch):
    def _boom(db, mentor_id):
        raise DependencyFailure("down")

    monkeypatch.setattr(stats_service, "recompute_mentor_statistics", _boom)

    assert stats_service.refresh_mentor_statistics(db_session, mentor.id) is None


def test_get_statistics_without_stored_row(db_session, mentor):
    stats = stats_service.get_mentor_statistics(db_session, mentor.id)

    assert stats["total_ratings"] == 0
    assert stats["average_rating"] == 0.0
    assert stats["last_updated"] is None
    assert db_session.query(MentorStatistics).count() == 0


def test_recompute_all_repairs_every_approved_mentor(db_session, mentee, mentor, make_user, make_session):
    second_mentor = make_user("mentor", approved=True)
    make_user("mentor", approved=False)
    session = make_session(mentee, second_mentor, status="completed")
    _log(db_session, session, 10)
    _rate(db_session, session, 2)

    summary = stats_service.recompute_all_mentor_statistics(db_session)

    assert summary["total_mentors"] == 2
    assert summary["updated_count"] == 2
    by_id = {row["mentor_id"]: row for row in summary["results"]}
    assert by_id[second_mentor.id]["statistics"]["average_rating"] == 2.0
    assert by_id[mentor.id]["statistics"]["total_ratings"] == 0


def test_recompute_all_continues_after_one_failure(db_session, mentor, make_user, monkeypatch):
    broken = make_user("mentor", approved=True)
    real = stats_service.recompute_mentor_statistics

    def _flaky(db, mentor_id):
        if mentor_id == broken.id:
            raise DependencyFailure("boom")
        return real(db, mentor_id)

    monkeypatch.setattr(stats_service, "recompute_mentor_statistics", _flaky)

    summary = stats_service.recompute_all_mentor_statistics(db_session)

    assert summary["updated_count"] == 1
    failed = [row for row in summary["results"] if not row["success"]]
    assert [row["mentor_id"] for row in failed] == [broken.id]


def test_update_script_reports_success(session_factory, mentor, monkeypatch, capsys):
    monkeypatch.setattr(update_mentor_stats, "SessionLocal", session_factory)

    assert update_mentor_stats.update_all() == 0
    assert "1/1 mentors updated" in capsys.readouterr().out


def test_admin_routes(db_session, mentee, mentor, make_user, make_session):
    admin = make_user("admin", approved=True)
    candidate = make_user("mentor", approved=False)
    make_session(mentee, mentor, status="active", started_at=utcnow())

    approved = approve_mentor(user_id=candidate.id, admin=admin, db=db_session)
    assert approved.approved is True

    with pytest.raises(HTTPException) as exc:
        approve_mentor(user_id=mentee.id, admin=admin, db=db_session)
    assert exc.value.status_code == 400

    overview = get_dashboard_stats(admin=admin, db=db_session)
    assert overview["sessions"]["active"] == 1
    assert overview["sessions"]["total"] == 1
    assert overview["mentors"] == {"total": 2, "approved": 2, "awaiting_approval": 0}

    result = recompute_mentor_statistics(admin=admin, db=db_session)
    assert result["total_mentors"] == 2


def test_require_role_rejects_other_roles(mentee, make_user):
    check = require_role("admin")

    with pytest.raises(HTTPException) as exc:
        check(current_user=mentee)
    assert exc.value.status_code == 403

    admin = make_user("admin")
    assert check(current_user=admin) is admin
