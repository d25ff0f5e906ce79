"""Domain errors raised by services; routers translate them to HTTP responses."""


class MarketplaceError(Exception):
    pass


class NotFoundError(MarketplaceError):
    pass


class AuthorizationError(MarketplaceError):
    pass


class InvalidTransitionError(MarketplaceError):
    """Request is already in the other terminal state."""


class TransferFailedError(MarketplaceError):
    """The transfer transaction was rolled back; nothing was applied."""


class InsufficientStockError(TransferFailedError):
    pass


class ConcurrentUpdateError(TransferFailedError):
    """Another transaction moved the request out of `pending` first."""
