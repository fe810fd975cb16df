"""Ledger error classes.

Every error aborts the transaction it is raised in; the chain rolls back all
state touched so far. Errors are grouped by cause so callers can handle a
whole family (``except EconomicGuardError``) or a single condition.
"""


class LedgerError(Exception):
    """Base error for all ledger operations."""

    pass


# --- Input validation ---


class InputValidationError(LedgerError):
    """A call argument is malformed or out of range."""

    pass


class ZeroAmount(InputValidationError):
    """An amount that must be positive is zero."""

    pass


class ZeroInput(InputValidationError):
    """Multi-hop input amount is zero."""

    pass


class ZeroRecipient(InputValidationError):
    """Output recipient is the null address."""

    pass


class InvalidAddress(InputValidationError):
    """An address argument is the null address or malformed."""

    pass


class InvalidAmount(InputValidationError):
    """A stream amount or rate is zero."""

    pass


class InvalidTimeframe(InputValidationError):
    """Stream window is empty or starts in the past."""

    pass


class InvalidPath(InputValidationError):
    """Swap path does not connect through the given pools."""

    pass


class InvalidPathLength(InvalidPath):
    """Swap path has too few or too many hops, or pool ids do not line up."""

    pass


class IdenticalAssets(InputValidationError):
    """Both legs of a pair are the same asset."""

    pass


class InvalidFee(InputValidationError):
    """Fee rate below the minimum."""

    pass


class FeeTooHigh(InputValidationError):
    """Fee rate above the maximum."""

    pass


class ETHAmountMismatch(InputValidationError):
    """Attached native value differs from the declared native amount."""

    pass


class UnexpectedETH(InputValidationError):
    """Native value attached to a call with no native leg."""

    pass


# --- State conflicts ---


class StateConflictError(LedgerError):
    """The call is well-formed but conflicts with current ledger state."""

    pass


class PoolNotFound(StateConflictError):
    """No pool with this identifier."""

    pass


class PoolAlreadyExists(StateConflictError):
    """A pool for this pair and fee already exists."""

    pass


class InvalidPool(StateConflictError):
    """A multi-hop route references an unknown pool."""

    pass


class InvalidToken(StateConflictError):
    """Asset is not one of the pool's two assets."""

    pass


class BothETH(StateConflictError):
    """Both legs of a pool are the native asset."""

    pass


class StreamNotFound(StateConflictError):
    """No stream with this identifier."""

    pass


class StreamNotActive(StateConflictError):
    """Stream is not active."""

    pass


class StreamAlreadyEnded(StateConflictError):
    """Stream window has already closed."""

    pass


class StreamNotEnded(StateConflictError):
    """Refund requested before the stream window closed."""

    pass


class Paused(StateConflictError):
    """Pool registry is paused."""

    pass


class ReentrantCall(StateConflictError):
    """Entry point re-entered while already executing."""

    pass


class InvalidBorrower(StateConflictError):
    """Flash-loan caller does not implement the borrower callback."""

    pass


# --- Economic guards ---


class EconomicGuardError(LedgerError):
    """An economic safety check failed."""

    pass


class SlippageExceeded(EconomicGuardError):
    """Result is below the caller's minimum."""

    pass


class InsufficientLiquidity(EconomicGuardError):
    """Pool would fall to or below the locked liquidity floor."""

    pass


class InsufficientLiquidityMinted(EconomicGuardError):
    """Deposit is too small to mint any shares."""

    pass


class InsufficientLiquidityBurned(EconomicGuardError):
    """Burn is too small to return any assets."""

    pass


class InsufficientLiquidityForFlashLoan(EconomicGuardError):
    """Flash loan exceeds the pool's reserve."""

    pass


class FlashLoanNotRepaid(EconomicGuardError):
    """Borrower did not return principal plus fee."""

    pass


class InsufficientOutputAmount(EconomicGuardError):
    """Swap would produce no output."""

    pass


class InsufficientBalance(EconomicGuardError):
    """Nothing is available to withdraw or refund."""

    pass


class InsufficientLpBalance(EconomicGuardError):
    """Caller holds fewer liquidity shares than requested."""

    pass


class ReserveOverflow(EconomicGuardError):
    """A reserve would exceed 112 bits."""

    pass


# --- Authorization ---


class AuthorizationError(LedgerError):
    """Caller is not allowed to perform this call."""

    pass


class Unauthorized(AuthorizationError):
    """Caller is not the sender, recipient or owner required."""

    pass


class InvalidSignature(AuthorizationError):
    """Signature does not recover to the required counterparty."""

    pass


# --- Value transfer ---


class TransferError(LedgerError):
    """A native or token transfer failed."""

    pass


class InsufficientFunds(TransferError):
    """Native balance too low for the transfer."""

    pass


class InsufficientTokenBalance(TransferError):
    """Token balance too low for the transfer."""

    pass


class InsufficientAllowance(TransferError):
    """Spender allowance too low for the transfer."""

    pass
