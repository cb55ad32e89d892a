"""
Error taxonomy for the secret messages ledger.

Every failure aborts the operation that raised it; no state is committed
before the checks that can raise these errors have passed.
"""


class SecretMessagesError(RuntimeError):
    """Base class for all ledger errors."""


class CapacityExceeded(SecretMessagesError):
    """Raised when registering past the configured address capacity."""


class StaleOrInvalidWitness(SecretMessagesError):
    """
    Raised when a witness does not match the stored root or expected key.

    Covers an already-registered address, a witness for the wrong address,
    and a lost race against a concurrent write.
    """


class PayloadOverflow(SecretMessagesError, ValueError):
    """Raised when a payload or message number does not fit 64 bits."""


class InvalidFlags(SecretMessagesError):
    """Raised when decoded message flags violate the flag constraints."""


class ReservedPayload(SecretMessagesError, ValueError):
    """Raised when a message payload collides with the unset or registered marker."""


class AdminAlreadySet(SecretMessagesError):
    """Raised on a second attempt to set the admin identity."""


class AdminNotSet(SecretMessagesError):
    """Raised when authorizing before the admin identity is set."""


class Unauthorized(SecretMessagesError):
    """Raised when the caller's credential does not match the admin identity."""


class StaleCursor(SecretMessagesError):
    """Raised when a reduction is attempted against a cursor that is no longer current."""


class ConfigError(SecretMessagesError, ValueError):
    """Raised when ledger configuration is invalid."""


__all__ = [
    "SecretMessagesError",
    "CapacityExceeded",
    "StaleOrInvalidWitness",
    "PayloadOverflow",
    "InvalidFlags",
    "ReservedPayload",
    "AdminAlreadySet",
    "AdminNotSet",
    "Unauthorized",
    "StaleCursor",
    "ConfigError",
]
