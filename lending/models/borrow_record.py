from datetime import datetime, timedelta
from lending.extensions import db

MAX_RENEWALS = 2


class BorrowStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BORROWED = "borrowed"
    RETURNED = "returned"
    OVERDUE = "overdue"

    ALL = (PENDING, APPROVED, REJECTED, BORROWED, RETURNED, OVERDUE)

    # counted against the per-user limit when requesting
    ACTIVE = (PENDING, APPROVED, BORROWED, OVERDUE)
    # counted against the per-user limit when approving
    HELD = (APPROVED, BORROWED, OVERDUE)
    # a copy is out with the patron
    ON_LOAN = (BORROWED, OVERDUE)


class BorrowRecord(db.Model):
    __tablename__ = "borrow_records"
    __table_args__ = (
        db.CheckConstraint(f"renewal_count >= 0 AND renewal_count <= {MAX_RENEWALS}", name="ck_borrow_renewal_count"),
        db.CheckConstraint("fine_amount >= 0", name="ck_borrow_fine_non_negative"),
        db.Index("ix_borrow_records_user_status", "user_id", "status"),
        db.Index("ix_borrow_records_status_due", "status", "due_date"),
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    request_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    borrow_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    return_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=BorrowStatus.PENDING, index=True)

    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)

    fine_amount = db.Column(db.Integer, nullable=False, default=0)
    fine_paid = db.Column(db.Boolean, nullable=False, default=False)
    renewal_count = db.Column(db.Integer, nullable=False, default=0)

    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id], backref="borrow_records")
    book = db.relationship("Book", backref="borrow_records")
    approver = db.relationship("User", foreign_keys=[approved_by])

    # UPDATE ... WHERE version = :loaded_version, StaleDataError on mismatch
    __mapper_args__ = {"version_id_col": version}

    def start_loan(self, admin_id: int, now: datetime, loan_days: int):
        self.status = BorrowStatus.BORROWED
        self.borrow_date = now
        self.due_date = now + timedelta(days=loan_days)
        self.approved_by = admin_id

    def extend_due_date(self, loan_days: int, now: datetime):
        """Push the due date forward from the current due date, not from now."""
        self.due_date = self.due_date + timedelta(days=loan_days)
        self.renewal_count += 1
        self.status = BorrowStatus.OVERDUE if self.due_date < now else BorrowStatus.BORROWED

    @property
    def is_on_loan(self) -> bool:
        return self.status in BorrowStatus.ON_LOAN

    def __repr__(self):
        return f"<BorrowRecord id={self.id} user={self.user_id} book={self.book_id} status={self.status}>"
