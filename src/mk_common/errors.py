"""Unified error codes and custom exceptions.

Every error carries a numeric code, an actionable message, an HTTP status and
an ErrorKind tag so callers can branch on the reason without parsing text.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Wallet
  4xxx: Order
  6xxx: Dispute
  7xxx: Review
  9xxx: System
"""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION = "VALIDATION"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: ErrorKind = ErrorKind.INTERNAL,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401, ErrorKind.UNAUTHORIZED)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Administrator role required", 403, ErrorKind.UNAUTHORIZED)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: object, available: object) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
            ErrorKind.VALIDATION,
        )


class WalletNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404, ErrorKind.NOT_FOUND)


class InsufficientPendingBalanceError(AppError):
    def __init__(self, user_id: str, required: object, available: object) -> None:
        super().__init__(
            2003,
            f"Escrow for user {user_id} holds {available}, cannot release {required}",
            409,
            ErrorKind.INVALID_STATE,
        )


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2004, f"Invalid amount: {detail}", 422, ErrorKind.VALIDATION)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404, ErrorKind.NOT_FOUND)


class OrderActionForbiddenError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4003, detail, 403, ErrorKind.UNAUTHORIZED)


class InvalidOrderStateError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4006, detail, 409, ErrorKind.INVALID_STATE)


class SelfPurchaseError(AppError):
    def __init__(self) -> None:
        super().__init__(4007, "You cannot purchase your own listing", 422, ErrorKind.VALIDATION)


class InvalidCancelReasonError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4008, f"Invalid cancel reason: {detail}", 422, ErrorKind.VALIDATION)


# --- 6xxx: Dispute ---

class InvalidDisputeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, detail, 422, ErrorKind.VALIDATION)


class DisputeNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(6004, f"No dispute for order {order_id}", 404, ErrorKind.NOT_FOUND)


# --- 7xxx: Review ---

class InvalidReviewError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(7001, detail, 422, ErrorKind.VALIDATION)


class ReviewLockedError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            7002,
            f"Review for order {order_id} has already been amended once",
            409,
            ErrorKind.INVALID_STATE,
        )


class ReviewNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(7003, f"No review for order {order_id}", 404, ErrorKind.NOT_FOUND)


class SellerNotFoundError(AppError):
    def __init__(self, seller_id: str) -> None:
        super().__init__(7004, f"Seller not found: {seller_id}", 404, ErrorKind.NOT_FOUND)


# --- 9xxx: System ---

class StorageFailureError(AppError):
    def __init__(self, detail: str = "Storage commit failed, no changes were applied") -> None:
        super().__init__(9003, detail, 503, ErrorKind.STORAGE_FAILURE)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, ErrorKind.INTERNAL)
