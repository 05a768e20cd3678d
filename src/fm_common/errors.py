"""Unified error codes and custom exceptions.

Error code ranges:
  2xxx: Ledger
  4xxx: Order
  6xxx: Bid
  7xxx: Payment
  9xxx: System

Duplicate payment confirmations are not errors: the payment handler returns
a DistributionResult with already_paid=True instead of raising.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 2xxx: Ledger ---

class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2001, f"Ledger amount must be positive, got {amount}", 422)


class LedgerWriteFailureError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Ledger write failed: {detail}", 500)


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    def __init__(self, order_id: int) -> None:
        super().__init__(4001, f"Order not found: {order_id}", 404)


class InvalidTransitionError(AppError):
    def __init__(self, order_id: int, current: str, requested: str, reason: str = "") -> None:
        self.order_id = order_id
        self.current = current
        self.requested = requested
        detail = f"Order {order_id} cannot move from {current} to {requested}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(4002, detail, 409)


class AssignmentIncompleteError(AppError):
    def __init__(self, order_id: int, missing: str) -> None:
        super().__init__(4003, f"Order {order_id} cannot be assigned without a {missing}", 422)


class BelowMinimumPriceError(AppError):
    def __init__(self, total_amount: int, minimum: int) -> None:
        super().__init__(
            4004,
            f"Order amount {total_amount} is below the minimum of {minimum}",
            422,
        )


# --- 6xxx: Bid ---

class BidNotFoundError(AppError):
    def __init__(self, bid_id: int) -> None:
        super().__init__(6001, f"Bid not found: {bid_id}", 404)


class DuplicateBidError(AppError):
    def __init__(self, order_id: int, writer_id: str) -> None:
        super().__init__(6002, f"Writer {writer_id} already bid on order {order_id}", 409)


class OrderNotBiddableError(AppError):
    def __init__(self, order_id: int, status: str) -> None:
        super().__init__(6003, f"Order {order_id} in status {status} is not open for bids", 422)


class BidNotPendingError(AppError):
    def __init__(self, bid_id: int, status: str) -> None:
        super().__init__(6004, f"Bid {bid_id} is already {status}", 409)


# --- 7xxx: Payment ---

class NotApprovedError(AppError):
    def __init__(self, order_id: int, status: str) -> None:
        super().__init__(
            7001,
            f"Order {order_id} in status {status} has not been accepted by the client",
            422,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvariantViolationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Invariant violated: {detail}", 500)
