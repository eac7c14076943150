

class ComedyConnectError(Exception):
    """
    Base exception for all domain-level errors
    inside the Comedy Connect booking engine.
    """

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)


class ValidationError(ComedyConnectError):
    """Raised when input is malformed or out of range."""

    status_code = 400


class NotFoundError(ComedyConnectError):
    """Raised when a requested resource does not exist."""

    status_code = 404

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found")


class BusinessError(ComedyConnectError):
    """Raised when a business rule rejects an otherwise valid request."""

    status_code = 400


class InsufficientInventoryError(BusinessError):
    """Raised when not enough tickets are available."""

    def __init__(self, message: str = "Not enough tickets available"):
        super().__init__(message)


class InvalidStateTransitionError(BusinessError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class UnauthorizedError(ComedyConnectError):
    """Raised when the request carries no usable identity."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(ComedyConnectError):
    """Raised when the caller's role does not allow the action."""

    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ServerError(ComedyConnectError):
    """Unexpected or infrastructure failure. Details stay in the logs."""


class PaymentGatewayError(ServerError):
    """Raised when the payment gateway cannot create an order."""
