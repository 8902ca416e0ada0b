"""
Exceptions for tailwind-connect.

Every failure a wallet reports is surfaced to the caller as one of these,
unchanged. Nothing in this package retries on the caller's behalf.
"""
from typing import Optional


class TailwindError(Exception):
    """Base exception for all tailwind-connect errors."""
    pass


class NotEnabledError(TailwindError):
    """Raised when the wallet has not granted access for the chain."""
    pass


# The wallet contract calls this condition "Unauthorized" as well
UnauthorizedError = NotEnabledError


class UserRejectedError(TailwindError):
    """Raised when the user declines a signing request."""
    pass


class ChainNotSupportedError(TailwindError):
    """Raised when a chain identifier is unknown to the wallet."""

    def __init__(self, chain_id: str, message: Optional[str] = None):
        self.chain_id = chain_id
        super().__init__(message or f"Chain not supported: {chain_id}")


class AccountNotFoundError(TailwindError):
    """Raised when an address is not controlled by the signer."""

    def __init__(self, address: str, chain_id: Optional[str] = None):
        self.address = address
        self.chain_id = chain_id
        where = f" on {chain_id}" if chain_id else ""
        super().__init__(f"Account not found{where}: {address}")


class ChainMismatchError(TailwindError):
    """Raised when a sign doc targets a different chain than the signer."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Sign doc chain id {actual!r} does not match signer chain {expected!r}"
        )


class DiscoveryTimeoutError(TailwindError):
    """Raised when a bounded wallet discovery wait expires."""
    pass


class WalletAlreadyRegisteredError(TailwindError):
    """Raised when a second, different wallet handle is registered."""
    pass


class UnsupportedAlgorithmError(TailwindError):
    """Raised when a key algorithm is not available to the wallet."""
    pass


class CodecError(TailwindError):
    """Raised when a message payload fails its registered codec."""

    def __init__(self, message: str, msg_type: Optional[str] = None):
        self.msg_type = msg_type
        super().__init__(message)
