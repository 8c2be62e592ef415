"""Unified error codes and custom exceptions.

Every error carries a stable ``reason`` string (returned to clients in
``data.reason``) next to the numeric code and human-readable message.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Listing
  3xxx: Bid
  4xxx: Settlement
  5xxx: Order
  9xxx: System

Error families (mirrored by the base classes below):
  ValidationError:          malformed/missing input, caller fixes and retries
  StateConflictError:       entity is in the wrong state, refresh then retry
  AuthorizationError:       actor lacks the required relationship
  NotFoundError:            entity does not exist
  ConcurrencyConflictError: optimistic-lock failure, whole operation is retryable
  ReconciliationError:      settlement outcome unknown, operator must reconcile
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        reason: str = "internal_error",
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.reason = reason
        super().__init__(message)


class ValidationError(AppError):
    def __init__(self, code: int, message: str, reason: str) -> None:
        super().__init__(code, message, 422, reason)


class StateConflictError(AppError):
    def __init__(self, code: int, message: str, reason: str) -> None:
        super().__init__(code, message, 409, reason)


class AuthorizationError(AppError):
    def __init__(self, code: int, message: str, reason: str) -> None:
        super().__init__(code, message, 403, reason)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str, reason: str) -> None:
        super().__init__(code, message, 404, reason)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401, "invalid_credentials")


class AccountDisabledError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1002, "Account is disabled", "account_disabled")


class AdminRequiredError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1003, "Admin role required", "admin_required")


# --- 2xxx: Listing ---

class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2001, f"Listing not found: {listing_id}", "listing_not_found")


class ListingNotActiveError(StateConflictError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(
            2002, f"Listing {listing_id} is not active (status={status})", "listing_not_active"
        )


class NotListingOwnerError(AuthorizationError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2003, f"Not the owner of listing {listing_id}", "not_owner")


class ListingAccessDeniedError(AuthorizationError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            2004, f"Not authorized to view bids for listing {listing_id}", "listing_access_denied"
        )


# --- 3xxx: Bid ---

class SelfBidError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(3001, "Cannot bid on your own listing", "self_bid_forbidden")


class BidTooLowError(StateConflictError):
    def __init__(self, posted_price: int) -> None:
        super().__init__(
            3002,
            f"Bid must be higher than the posted price of {posted_price} cents per unit",
            "bid_too_low",
        )


class BidTooHighError(StateConflictError):
    def __init__(self, posted_price: int) -> None:
        super().__init__(
            3003,
            f"Bid must be lower than the posted price of {posted_price} cents per unit",
            "bid_too_high",
        )


class DuplicatePendingBidError(StateConflictError):
    def __init__(self) -> None:
        super().__init__(
            3004, "You already have a pending bid on this listing", "duplicate_pending_bid"
        )


class DeliveryAddressRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__(
            3005,
            "A complete delivery address (street, city, state, postal code) is required",
            "delivery_address_required",
        )


class OwnerAddressIncompleteError(StateConflictError):
    def __init__(self) -> None:
        super().__init__(
            3006,
            "Listing owner's profile address is incomplete; delivery address cannot be derived",
            "owner_address_incomplete",
        )


class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(3007, f"Pending bid not found: {bid_id}", "bid_not_found")


# --- 4xxx: Settlement ---

class ConcurrencyConflictError(AppError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            4001,
            f"{entity} {entity_id} was modified concurrently; retry the operation",
            409,
            "concurrency_conflict",
        )


class ReconciliationError(AppError):
    def __init__(self, listing_id: str, marker_id: str | None) -> None:
        self.listing_id = listing_id
        self.marker_id = marker_id
        super().__init__(
            4002,
            f"Settlement of listing {listing_id} did not complete cleanly and needs "
            f"reconciliation (marker={marker_id})",
            500,
            "reconciliation_required",
        )


class OrderNumberExhaustedError(AppError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            4003,
            f"Could not allocate a unique order number after {attempts} attempts",
            409,
            "order_number_conflict",
        )


class OperationTimeoutError(AppError):
    def __init__(self, operation: str, listing_id: str) -> None:
        self.operation = operation
        super().__init__(
            4004,
            f"{operation.capitalize()} on listing {listing_id} timed out; nothing was persisted",
            503,
            "timeout",
        )


class ReconciliationNotFoundError(NotFoundError):
    def __init__(self, marker_id: str) -> None:
        super().__init__(
            4005, f"Open reconciliation marker not found: {marker_id}", "reconciliation_not_found"
        )


# --- 5xxx: Order ---

class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str) -> None:
        super().__init__(5001, f"Order not found: {order_id}", "order_not_found")


class NotOrderPartyError(AuthorizationError):
    def __init__(self, action: str) -> None:
        super().__init__(5002, f"Not authorized to {action} this order", "not_order_party")


class OrderNotCancellableError(StateConflictError):
    def __init__(self, order_id: str, detail: str) -> None:
        super().__init__(
            5003, f"Order {order_id} cannot be cancelled: {detail}", "order_not_cancellable"
        )


class OrderNotReviewableError(StateConflictError):
    def __init__(self, order_id: str, detail: str) -> None:
        super().__init__(
            5004, f"Order {order_id} cannot be reviewed: {detail}", "order_not_reviewable"
        )


class OrderNotUpdatableError(StateConflictError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(
            5005, f"Order {order_id} in status {status} cannot be updated", "order_not_updatable"
        )


class InvalidRatingError(ValidationError):
    def __init__(self, rating: int) -> None:
        super().__init__(5006, f"Rating must be between 1 and 5, got {rating}", "invalid_rating")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "internal_error")
