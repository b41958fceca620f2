# orders/services/exceptions.py

from rest_framework import status

from backend.errors import DomainError


class OrderError(DomainError):
    code = "ORDER_ERROR"


class InvalidStateError(OrderError):
    code = "INVALID_STATE"


class InvalidTransitionError(OrderError):
    code = "INVALID_TRANSITION"

    def __init__(self, message: str = "", *, allowed=None):
        self.allowed = sorted(allowed or [])
        super().__init__(message)

    def payload(self) -> dict:
        body = super().payload()
        body["error"]["allowed_statuses"] = self.allowed
        return body


class OrderForbiddenError(OrderError):
    code = "FORBIDDEN"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this order"


class ReturnAlreadyRequestedError(OrderError):
    code = "RETURN_ALREADY_REQUESTED"
    default_message = "Return/exchange already requested for this order"


class InvalidReturnQuantityError(OrderError):
    code = "INVALID_RETURN_QUANTITY"


class ReturnItemNotFoundError(OrderError):
    code = "RETURN_ITEM_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class ReturnNotFoundError(OrderError):
    code = "RETURN_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "No return/exchange request found for this order"


class PaymentInitError(OrderError):
    """
    The only integration failure that is fatal to its operation.
    Upstream detail stays in the logs.
    """

    code = "PAYMENT_INIT_FAILED"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to create payment order"


class NoCampaignRecipientsError(OrderError):
    code = "NO_RECIPIENTS"
    default_message = "No recipients for this campaign"
