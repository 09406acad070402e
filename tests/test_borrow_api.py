from datetime import datetime, timedelta

from lending.extensions import db
from lending.models import Book, BorrowRecord, BorrowStatus


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json()["ok"] is True


def test_borrow_routes_need_a_token(client):
    r = client.post("/borrows/", json={"book_id": 1})
    assert r.status_code == 401


def test_request_approve_return_flow(client, patron, admin, make_book, auth_header):
    book = make_book(copies=1)

    r = client.post("/borrows/", json={"book_id": book.id}, headers=auth_header(patron))
    assert r.status_code == 201
    body = r.get_json()
    assert body["success"] is True
    record_id = body["data"]["id"]
    assert body["data"]["status"] == "pending"

    r = client.get("/borrows/pending", headers=auth_header(admin))
    assert r.status_code == 200
    assert [x["id"] for x in r.get_json()["data"]] == [record_id]

    r = client.put(f"/borrows/{record_id}/approve", headers=auth_header(admin))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "borrowed"
    assert data["approved_by"] == admin.id
    assert data["current_fine"] == 0
    assert db.session.get(Book, book.id).available_copies == 0

    r = client.get("/borrows/current", headers=auth_header(patron))
    assert [x["id"] for x in r.get_json()["data"]] == [record_id]

    r = client.put(f"/borrows/{record_id}/return", headers=auth_header(patron))
    assert r.status_code == 200
    body = r.get_json()
    assert body["data"]["status"] == "returned"
    assert body["message"] == "Book returned successfully"
    assert db.session.get(Book, book.id).available_copies == 1


def test_duplicate_request_is_rejected(client, patron, make_book, auth_header):
    book = make_book()
    client.post("/borrows/", json={"book_id": book.id}, headers=auth_header(patron))

    r = client.post("/borrows/", json={"book_id": book.id}, headers=auth_header(patron))
    assert r.status_code == 400
    body = r.get_json()
    assert body["success"] is False
    assert body["error"] == "DuplicateActiveBorrow"


def test_request_requires_book_id(client, patron, auth_header):
    r = client.post("/borrows/", json={}, headers=auth_header(patron))
    assert r.status_code == 400


def test_request_unknown_book(client, patron, auth_header):
    r = client.post("/borrows/", json={"book_id": 999}, headers=auth_header(patron))
    assert r.status_code == 404
    assert r.get_json()["error"] == "BookNotFound"


def test_patron_cannot_approve(client, patron, make_book, make_record, auth_header):
    record = make_record(patron, make_book())
    r = client.put(f"/borrows/{record.id}/approve", headers=auth_header(patron))
    assert r.status_code == 403
    assert db.session.get(BorrowRecord, record.id).status == BorrowStatus.PENDING


def test_approve_without_copies(client, patron, admin, make_book, make_record, auth_header):
    record = make_record(patron, make_book(copies=1, available=0))
    r = client.put(f"/borrows/{record.id}/approve", headers=auth_header(admin))
    assert r.status_code == 400
    assert r.get_json()["error"] == "NoCopiesAvailable"


def test_reject_with_reason(client, patron, admin, make_book, make_record, auth_header):
    record = make_record(patron, make_book())
    r = client.put(f"/borrows/{record.id}/reject", json={"reason": "lost"}, headers=auth_header(admin))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "lost"


def test_return_someone_elses_book(client, patron, make_user, make_book, make_record, auth_header):
    now = datetime.utcnow()
    record = make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                         borrow_date=now, due_date=now + timedelta(days=14))
    r = client.put(f"/borrows/{record.id}/return", headers=auth_header(make_user()))
    assert r.status_code == 403
    assert r.get_json()["error"] == "NotAuthorized"


def test_renew_and_limit(client, patron, make_book, make_record, auth_header):
    now = datetime.utcnow()
    record = make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                         borrow_date=now, due_date=now + timedelta(days=14))

    for expected in (1, 2):
        r = client.put(f"/borrows/{record.id}/renew", headers=auth_header(patron))
        assert r.status_code == 200
        assert r.get_json()["data"]["renewal_count"] == expected

    r = client.put(f"/borrows/{record.id}/renew", headers=auth_header(patron))
    assert r.status_code == 400
    assert r.get_json()["error"] == "RenewalLimitReached"


def test_late_return_then_pay_fine(client, patron, make_book, make_record, auth_header):
    now = datetime.utcnow()
    record = make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                         borrow_date=now - timedelta(days=17), due_date=now - timedelta(days=3, hours=1))

    r = client.put(f"/borrows/{record.id}/return", headers=auth_header(patron))
    assert r.status_code == 200
    assert r.get_json()["data"]["fine_amount"] == 4
    assert r.get_json()["message"] == "Book returned with a fine of 4"

    r = client.get("/borrows/my-fines", headers=auth_header(patron))
    assert r.get_json()["data"]["total_unpaid_fines"] == 4

    r = client.put(f"/borrows/{record.id}/pay-fine", headers=auth_header(patron))
    assert r.status_code == 200

    r = client.put(f"/borrows/{record.id}/pay-fine", headers=auth_header(patron))
    assert r.status_code == 400
    assert r.get_json()["error"] == "FineAlreadyPaid"

    r = client.get("/borrows/my-fines", headers=auth_header(patron))
    assert r.get_json()["data"]["total_unpaid_fines"] == 0


def test_overdue_listing_sweeps_and_shows_live_fine(client, patron, admin, make_book, make_record, auth_header):
    now = datetime.utcnow()
    record = make_record(patron, make_book(), status=BorrowStatus.BORROWED,
                         borrow_date=now - timedelta(days=24), due_date=now - timedelta(days=10) + timedelta(minutes=5))

    r = client.get("/borrows/overdue", headers=auth_header(admin))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert [x["id"] for x in data] == [record.id]
    assert data[0]["status"] == "overdue"
    assert data[0]["current_fine"] == 10


def test_my_borrows_pagination(client, patron, make_book, auth_header):
    for _ in range(3):
        client.post("/borrows/", json={"book_id": make_book().id}, headers=auth_header(patron))

    r = client.get("/borrows/my-borrows?page=2&limit=2", headers=auth_header(patron))
    body = r.get_json()
    assert len(body["data"]) == 1
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}


def test_unknown_status_filter(client, admin, auth_header):
    r = client.get("/borrows/?status=lost", headers=auth_header(admin))
    assert r.status_code == 400
