class PaymentError(Exception):
    """Base class for payment relay errors."""


class PaymentValidationError(PaymentError):
    pass


class UpstreamAuthError(PaymentError):
    """The Daraja OAuth endpoint did not hand out an access token."""


class ProviderRequestError(PaymentError):
    """An STK push or query call was rejected or never reached Daraja."""

    def __init__(self, message, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersistenceError(PaymentError):
    pass


class NotFoundError(PaymentError):
    pass


class CallbackProcessingError(PaymentError):
    """A callback was malformed or did not match a stored transaction."""


class InitiationFailedError(PaymentError):
    pass


class TransactionConflictError(PaymentError):
    """The transaction is not in a state that allows the requested action."""
