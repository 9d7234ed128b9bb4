from __future__ import annotations

from typing import Mapping


class BookingError(Exception):
    """Base class for every error the booking and admin flows report."""


class ValidationError(BookingError):
    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), "invalid input")
        super().__init__(first)


class FetchError(BookingError):
    """Catalog read failed."""


class PersistenceError(BookingError):
    """A booking, contact or admin write failed."""


class ImageStorageError(PersistenceError):
    """Image upload failed or image hosting is not configured."""


class HandoffError(BookingError):
    """The messaging deep link could not be opened."""


class NotFoundError(BookingError):
    pass
