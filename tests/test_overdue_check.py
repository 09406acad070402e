from datetime import timedelta

from lending.extensions import db, mail
from lending.models import BorrowRecord, BorrowStatus, NotificationLog
from lending.tasks.overdue_check import run_overdue_check

from conftest import T0


def test_sweeps_and_mails_each_overdue_patron_once(app, patron, make_book, make_record):
    record = make_record(patron, make_book(title="Dune"), status=BorrowStatus.BORROWED,
                         borrow_date=T0 - timedelta(days=17), due_date=T0 - timedelta(days=3))

    with mail.record_messages() as outbox:
        result = run_overdue_check(T0)

    assert result == {"marked_overdue": 1, "notices_sent": 1}
    assert db.session.get(BorrowRecord, record.id).status == BorrowStatus.OVERDUE
    assert len(outbox) == 1
    assert outbox[0].recipients == ["alice@example.com"]
    assert "Dune" in outbox[0].body
    assert "Fine accrued so far: 3" in outbox[0].body

    log = NotificationLog.query.filter_by(borrow_id=record.id).one()
    assert log.type == "overdue" and log.success is True

    with mail.record_messages() as outbox:
        result = run_overdue_check(T0 + timedelta(hours=1))

    assert result == {"marked_overdue": 0, "notices_sent": 0}
    assert outbox == []


def test_notices_can_be_turned_off(app, patron, make_book, make_record):
    app.config["OVERDUE_NOTICES_ENABLED"] = False
    make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                borrow_date=T0 - timedelta(days=17), due_date=T0 - timedelta(days=3))

    with mail.record_messages() as outbox:
        result = run_overdue_check(T0)

    assert result == {"marked_overdue": 1, "notices_sent": 0}
    assert outbox == []
    assert NotificationLog.query.count() == 0


def test_admin_can_trigger_the_check(client, admin, auth_header):
    r = client.post("/admin/run-overdue-check", headers=auth_header(admin))
    assert r.status_code == 200
    assert r.get_json()["data"] == {"marked_overdue": 0, "notices_sent": 0}


def test_failed_notices_stop_after_max_attempts(app, patron, make_book, make_record, monkeypatch):
    def refuse(msg):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "send", refuse)
    record = make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                         borrow_date=T0 - timedelta(days=17), due_date=T0 - timedelta(days=3))

    for hour in range(5):
        result = run_overdue_check(T0 + timedelta(hours=hour))
        assert result["notices_sent"] == 0

    logs = NotificationLog.query.filter_by(borrow_id=record.id).all()
    assert len(logs) == app.config["OVERDUE_NOTICE_MAX_ATTEMPTS"] == 3
    assert all(log.success is False for log in logs)
    assert "smtp down" in logs[0].error_message
