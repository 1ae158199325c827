"""Exception hierarchy for the route engine."""

from typing import Optional


class ArbrouteError(Exception):
    """Base class for engine errors."""


class ChainConfigError(ArbrouteError):
    """Raised when the chain registry is malformed.

    Raised at construction time so that bad configuration never turns into
    plausible-looking cost numbers later on.
    """


class UnknownChainError(ArbrouteError):
    """Raised when a chain id is not present in the registry."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Unknown chain id: {chain_id}")


class QuoteFetchError(ArbrouteError):
    """Raised when the aggregator quote service fails or returns garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
