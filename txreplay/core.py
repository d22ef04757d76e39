"""
Core types and pure helpers for the transaction replay system.

This module provides the foundational data structures for replaying a
transaction log into client account balances:
1. Enums: TxAction (the closed set of row kinds) and ApplyResult
2. Data structures: Transaction, Account, AccountSnapshot
3. Exceptions: ReplayError and RecordParseError
4. Type aliases: AccountMap, TxMap
5. Decimal helpers: rounding and canonical formatting of amounts

Account methods are the only place balances change. Every one of them is a
silent no-op when its precondition fails: the replay is a best-effort
reconciliation of an already-recorded log, not a validator of it.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from enum import Enum
from typing import Dict, Optional


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Replay arithmetic must be exact and deterministic across arbitrarily long
# logs. The global context is configured once at module load time.
#
# PRECONDITION: No other code should modify the global Decimal context.
# If thread-local contexts are needed, use decimal.localcontext().
#
# Context parameters:
#   - prec=50: Far more digits than any 4-decimal ledger amount needs
#   - rounding=ROUND_HALF_EVEN: Banker's rounding (unbiased)
#
_REPLAY_DECIMAL_CONTEXT = getcontext()
_REPLAY_DECIMAL_CONTEXT.prec = 50
_REPLAY_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Fractional digits kept on output rows.
OUTPUT_DECIMAL_PLACES = 4

# Client ids are unsigned 16-bit, transaction ids unsigned 32-bit.
MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TX_ID = 2 ** 32 - 1

# Amounts carry at most this many integer digits, like a 28-digit
# fixed-point decimal. Keeps every rounded output value within prec.
MAX_AMOUNT_DIGITS = 28

ZERO = Decimal("0")


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Optional exact-decimal quantity; None for dispute/resolve/chargeback rows.
TxAmount = Optional[Decimal]


# ============================================================================
# ENUMS
# ============================================================================

class TxAction(Enum):
    """
    Kind of a transaction row. Values are the lowercase names used on the wire.

    DEPOSIT and WITHDRAWAL move funds. DISPUTE, RESOLVE and CHARGEBACK refer
    back to an earlier deposit by its transaction id.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @classmethod
    def from_wire(cls, text: str) -> TxAction:
        """
        Decode a wire name such as "deposit".

        Surrounding whitespace is ignored; the name itself must match exactly.

        Raises:
            ValueError: If the name is not a known action
        """
        try:
            return cls(text.strip())
        except ValueError:
            raise ValueError(f"unknown transaction type: {text!r}") from None

    @property
    def refers_to_deposit(self) -> bool:
        """True for the three dispute-lifecycle actions."""
        return self in (TxAction.DISPUTE, TxAction.RESOLVE, TxAction.CHARGEBACK)


class ApplyResult(Enum):
    """
    Outcome of applying one transaction to the ledger.

    APPLIED: Account or dispute state changed.
    IGNORED: A business-rule precondition failed and nothing changed.
             This is informational only, never an error.
    """
    APPLIED = "applied"
    IGNORED = "ignored"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ReplayError(Exception):
    """Base exception for all structural replay errors."""
    pass


class RecordParseError(ReplayError):
    """Raised when an input record cannot be decoded into a Transaction."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


# ============================================================================
# DECIMAL HELPERS
# ============================================================================

def round_amount(value: Decimal, places: int = OUTPUT_DECIMAL_PLACES) -> Decimal:
    """Round to a fixed number of fractional digits with banker's rounding."""
    quantizer = Decimal(10) ** -places
    return value.quantize(quantizer, rounding=ROUND_HALF_EVEN)


def normalize_decimal(d: Decimal) -> str:
    """
    Normalize a Decimal to a canonical string representation.

    Ensures that semantically equal values produce identical strings:
    - Decimal("1.0") and Decimal("1.00") both become "1"
    - Trailing zeros are removed
    - Scientific notation is avoided (Decimal("1E+2") becomes "100")
    - Negative zero becomes "0"
    """
    normalized = d.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


def format_amount(value: Decimal, places: int = OUTPUT_DECIMAL_PLACES) -> str:
    """Round then normalize an amount for output."""
    return normalize_decimal(round_amount(value, places))


def _check_amount(amount: TxAmount) -> None:
    if amount is None:
        return
    if not isinstance(amount, Decimal):
        raise ValueError(f"amount must be Decimal, got {type(amount)}")
    if amount.is_infinite() or amount.is_nan():
        raise ValueError(f"amount must be finite, got {amount}")


def _check_id(name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value)}")
    if value < 0 or value > maximum:
        raise ValueError(f"{name} out of range 0..{maximum}: {value}")


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(slots=True)
class Transaction:
    """
    One row of the transaction log.

    Attributes:
        action: Row kind.
        client: Client id the row belongs to.
        tx: Transaction id. Unique among deposits and withdrawals; for
            dispute rows it names the deposit being referred to.
        amount: Quantity for deposits and withdrawals, None otherwise.
        is_disputed: Dispute flag. Only toggled on indexed deposits.

    The dataclass is mutable because the dispute flag changes during replay.
    Ids and amount are validated in __post_init__.
    """
    action: TxAction
    client: int
    tx: int
    amount: TxAmount = None
    is_disputed: bool = False

    def __post_init__(self):
        if not isinstance(self.action, TxAction):
            raise ValueError(f"action must be TxAction, got {type(self.action)}")
        _check_id("client", self.client, MAX_CLIENT_ID)
        _check_id("tx", self.tx, MAX_TX_ID)
        _check_amount(self.amount)

    def is_disputable(self) -> bool:
        """Only deposits can be disputed."""
        return self.action is TxAction.DEPOSIT

    def __repr__(self) -> str:
        amount = "" if self.amount is None else f", amount={self.amount}"
        flag = ", disputed" if self.is_disputed else ""
        return f"Transaction({self.action.value}, client={self.client}, tx={self.tx}{amount}{flag})"


# ============================================================================
# ACCOUNT
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """Immutable point-in-time view of an Account, used for output and comparison."""
    client: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass(slots=True)
class Account:
    """
    Mutable balance state for one client.

    Attributes:
        client: Client id.
        available: Funds usable for withdrawal. May go negative when a deposit
                   is disputed after part of it was withdrawn.
        held: Funds under active dispute.
        is_locked: Set by a chargeback and never cleared.

    Once locked, every operation below is a no-op. Each operation returns
    True when it changed the account.
    """
    client: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    is_locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def deposit(self, amount: TxAmount) -> bool:
        if self.is_locked or amount is None:
            return False
        self.available += amount
        return True

    def withdraw(self, amount: TxAmount) -> bool:
        """Insufficient funds leaves the account untouched."""
        if self.is_locked or amount is None:
            return False
        if amount > self.available:
            return False
        self.available -= amount
        return True

    def hold(self, amount: TxAmount) -> bool:
        """
        Move funds from available to held.

        This is not a withdrawal: available is allowed to go negative, since
        funds already withdrawn are not clawed back until a chargeback.
        """
        if self.is_locked or amount is None:
            return False
        self.available -= amount
        self.held += amount
        return True

    def release(self, amount: TxAmount) -> bool:
        if self.is_locked or amount is None:
            return False
        self.available += amount
        self.held -= amount
        return True

    def chargeback(self, amount: TxAmount) -> bool:
        """Remove held funds permanently and lock the account."""
        if self.is_locked or amount is None:
            return False
        self.held -= amount
        self.is_locked = True
        return True

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client=self.client,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.is_locked,
        )


# Mapping from client id to that client's account (the Account Table).
AccountMap = Dict[int, Account]

# Mapping from transaction id to its stored deposit (the Ledger Index).
TxMap = Dict[int, Transaction]
