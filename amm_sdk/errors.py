"""
AMM Intent SDK - Errors

Every failure that can stop an intent on its way to a solution.
All errors carry the operation and offending field so callers can log and abort.
"""

from typing import Optional


class AmmError(Exception):
    """Base class for SDK errors."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 field: Optional[str] = None):
        self.message = message
        self.operation = operation
        self.field = field
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.field:
            context.append(f"field={self.field}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class InvalidKeyKind(AmmError):
    """Public key is not a compressed secp256k1 key."""


class InvalidTokenSelector(AmmError):
    """Swap selector is neither token A (1) nor token B (2)."""

    def __init__(self, selector: int, operation: str = "SwapTokens"):
        self.selector = selector
        super().__init__(f"Invalid token selector {selector}, expected 1 or 2",
                         operation, "from_token")


class InvalidAmount(AmmError):
    """Amount is negative, missing or does not fit in a word."""


class PredicateNotFound(AmmError):
    """No predicate address is known for an operation."""


class CompilationFailed(AmmError):
    """Contract project could not be compiled into addresses."""


class KeyNotFound(AmmError):
    """Wallet holds no key for the requested account."""


class WalletLocked(AmmError):
    """Wallet handle is closed or could not be unlocked."""


class AccountMismatch(AmmError):
    """Intent account is not the signing account."""


class SigningFailed(AmmError):
    """Signer could not produce a signature."""


class UnexpectedQueryShape(AmmError):
    """State query returned more words than a single value."""


class SubmissionFailed(AmmError):
    """Builder or node request failed."""

    def __init__(self, code: int, message: str, operation: Optional[str] = None):
        self.code = code
        super().__init__(f"Request error {code}: {message}", operation)
