"""Domain errors.

Services and repositories raise these; the HTTP layer renders every one of
them as ``{"error": message}`` with the status code carried by the class.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "internal error"


class InvalidInput(AppError):
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "invalid input"


class Unauthenticated(AppError):
    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "not authenticated"


class Forbidden(AppError):
    status_code = 403

    @classmethod
    def default_message(cls) -> str:
        return "forbidden"


class NotFound(AppError):
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "not found"


class Conflict(AppError):
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "conflict"


class PreconditionFailed(AppError):
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "precondition failed"


class OutOfStock(AppError):
    status_code = 400

    def __init__(self, product_id: int, message: str | None = None):
        self.product_id = product_id
        super().__init__(message or f"insufficient stock for product {product_id}")


class InvalidOption(AppError):
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "option does not belong to product"


class PriceBelowZero(AppError):
    status_code = 400

    @classmethod
    def default_message(cls) -> str:
        return "item total must not be negative"


class StatusTransitionError(AppError):
    status_code = 400


class UnknownCurrentStatus(StatusTransitionError):
    @classmethod
    def default_message(cls) -> str:
        return "current status is not part of the shop's status flow"


class TerminalStatus(StatusTransitionError):
    @classmethod
    def default_message(cls) -> str:
        return "order is in a final status"


class IllegalTransition(StatusTransitionError):
    @classmethod
    def default_message(cls) -> str:
        return "transition is not allowed by the shop's status flow"


class RateLimited(AppError):
    status_code = 429

    @classmethod
    def default_message(cls) -> str:
        return "too many requests"


class Internal(AppError):
    status_code = 500
