from __future__ import annotations


class CryptoOrderError(Exception):
    """Base class for errors raised by the crypto order client."""


class OrderValidationError(CryptoOrderError, ValueError):
    pass


class OrderSerializationError(CryptoOrderError):
    pass


class OrderRejectedError(CryptoOrderError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TransportNotAttachedError(CryptoOrderError, RuntimeError):
    def __init__(self, order_id: str | None = None) -> None:
        message = "no transport attached to order result"
        if order_id:
            message = f"{message}: {order_id}"
        super().__init__(message)
        self.order_id = order_id
