"""
Named outcomes of the borrow lifecycle.

Every rejection of a requested transition is a ``LendingError``. They subclass
``ValueError`` so callers that only care about "business rule said no" can keep
catching ``ValueError``; the HTTP layer uses ``status_code`` and ``message``.
"""

from __future__ import annotations


class LendingError(ValueError):
    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    @property
    def code(self) -> str:
        return type(self).__name__


# -- not found (404) --
class NotFound(LendingError):
    status_code = 404
    message = "Not found"


class RecordNotFound(NotFound):
    message = "Borrow record not found"


class BookNotFound(NotFound):
    message = "Book not found"


class UserNotFound(NotFound):
    message = "User not found"


# -- ownership / role (403) --
class NotAuthorized(LendingError):
    status_code = 403
    message = "Not authorized"


# -- precondition failed (400) --
class PreconditionFailed(LendingError):
    status_code = 400


class UserInactive(PreconditionFailed):
    message = "User account is inactive. Please contact administrator."


class BorrowLimitExceeded(PreconditionFailed):
    message = "Maximum limit of active borrow requests/books reached"


class DuplicateActiveBorrow(PreconditionFailed):
    message = "A pending request or active borrow already exists for this book"


class RecordNotPending(PreconditionFailed):
    message = "Borrow request is not pending"


class NoCopiesAvailable(PreconditionFailed):
    message = "No copies available"


class AlreadyReturned(PreconditionFailed):
    message = "Book already returned"


class InvalidStatusForReturn(PreconditionFailed):
    message = "Cannot return book with this status"


class RecordReturned(PreconditionFailed):
    message = "Cannot renew a returned book"


class RenewalLimitReached(PreconditionFailed):
    message = "Maximum renewal limit reached"


class InvalidStatusForRenewal(PreconditionFailed):
    message = "Cannot renew book with this status"


class NoFineDue(PreconditionFailed):
    message = "No fine to pay"


class FineAlreadyPaid(PreconditionFailed):
    message = "Fine already paid"


class CannotModifyAdmin(PreconditionFailed):
    message = "Cannot modify admin status"


# -- lost a race with another writer (409) --
class ConcurrentModification(LendingError):
    status_code = 409
    message = "Borrow record was modified concurrently, please retry"
