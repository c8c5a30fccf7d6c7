"""
ChopNow Storefront — Domain exceptions

Deterministic faults (bad transitions, missing vendor profile) surface to the
caller. CollaboratorFailure wraps anything raised by the data store.
"""


class ChopNowError(Exception):
    """Base class for every error raised by the storefront core."""


class InvalidTransition(ChopNowError, ValueError):
    """Target status is unknown or not reachable from the current status."""

    def __init__(self, current: str | None, target: str, reason: str | None = None):
        self.current = current
        self.target = target
        message = reason or f"Cannot move order from '{current}' to '{target}'."
        super().__init__(message)


class TransitionForbidden(InvalidTransition):
    """Transition exists in the lifecycle but the actor may not perform it."""


class TerminalStateError(InvalidTransition):
    """Order is already delivered or cancelled."""

    def __init__(self, current: str, target: str):
        super().__init__(
            current,
            target,
            f"Order is already '{current}'; no further transitions are allowed.",
        )


class Unauthenticated(ChopNowError):
    """No identity could be resolved for the caller."""


class VendorProfileMissing(ChopNowError):
    """A vendor-role user has no vendors row."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No vendor profile found for user '{user_id}'.")


class VendorNotApproved(ChopNowError):
    def __init__(self, vendor_id: str, status: str):
        self.vendor_id = vendor_id
        self.status = status
        super().__init__(f"Vendor '{vendor_id}' is not accepting orders (status={status}).")


class CheckoutError(ChopNowError, ValueError):
    """Cart contents cannot be turned into an order."""


class NotFound(ChopNowError, LookupError):
    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found.")


class Forbidden(ChopNowError):
    """Caller is signed in but does not own the resource."""


class Conflict(ChopNowError):
    """Request clashes with existing state (duplicate application, second review)."""


class CollaboratorFailure(ChopNowError):
    """Wraps any error raised by the data access collaborator."""

    def __init__(self, operation: str, entity: str, cause: BaseException | None = None):
        self.operation = operation
        self.entity = entity
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} on '{entity}' failed{detail}")
