"""Value objects for the domain layer.

Money is kept in integer minor units (paise for INR) so that fee math
never accumulates floating point error.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Self

from backoffice.domain.base import ValueObject
from backoffice.domain.exceptions import CurrencyMismatchError, NegativeMoneyError

DEFAULT_CURRENCY = "INR"


# ============================================================================
# Money
# ============================================================================


@dataclass(frozen=True)
class Money(ValueObject):
    """Monetary value with currency.

    Attributes:
        amount_cents: Amount in the smallest currency unit.
        currency: ISO 4217 currency code.
    """

    amount_cents: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise NegativeMoneyError(self.amount_cents)
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Self:
        return cls(amount_cents=0, currency=currency)

    @classmethod
    def from_decimal(cls, amount: Decimal, currency: str = DEFAULT_CURRENCY) -> Self:
        """Create money from an amount in major units (e.g. rupees)."""
        cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return cls(amount_cents=cents, currency=currency)

    def to_decimal(self) -> Decimal:
        """Amount in major units."""
        return Decimal(self.amount_cents) / 100

    def percentage(self, rate: Decimal) -> "Money":
        """Apply a fractional rate, rounding half up to whole minor units.

        Args:
            rate: Fraction such as ``Decimal("0.05")`` for 5%.

        Returns:
            New Money holding ``self × rate``.
        """
        cents = (Decimal(self.amount_cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return Money(amount_cents=int(cents), currency=self.currency)

    def __add__(self, other: "Money") -> "Money":
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return Money(
            amount_cents=self.amount_cents + other.amount_cents,
            currency=self.currency,
        )

    def __sub__(self, other: "Money") -> "Money":
        """Subtract money amounts.

        Raises:
            CurrencyMismatchError: If currencies don't match.
            NegativeMoneyError: If the result would be negative.
        """
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
        return Money(
            amount_cents=self.amount_cents - other.amount_cents,
            currency=self.currency,
        )

    def __mul__(self, quantity: int) -> "Money":
        return Money(
            amount_cents=self.amount_cents * quantity,
            currency=self.currency,
        )

    def __rmul__(self, quantity: int) -> "Money":
        return self.__mul__(quantity)

    def __str__(self) -> str:
        symbol = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}.get(self.currency, "")
        return f"{symbol}{self.to_decimal():.2f} {self.currency}"

    def is_zero(self) -> bool:
        return self.amount_cents == 0


# ============================================================================
# Addresses and Bank Details
# ============================================================================


@dataclass(frozen=True)
class Address(ValueObject):
    """Postal address snapshot stored on an order."""

    name: str
    line1: str
    city: str
    postal_code: str
    country: str = "IN"
    line2: str | None = None
    state: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class BankDetails(ValueObject):
    """Destination account for a payout.

    Attributes:
        account_number: Bank account number.
        ifsc_code: Indian Financial System Code of the branch.
        account_holder_name: Name on the account.
        bank_name: Name of the bank.
        account_type: Transfer method label shown in payout history.
    """

    account_number: str
    ifsc_code: str
    account_holder_name: str
    bank_name: str
    account_type: str = "bank_transfer"

    def masked_account_number(self) -> str:
        """Account number with all but the last four digits hidden."""
        tail = self.account_number[-4:]
        return "*" * max(len(self.account_number) - 4, 0) + tail


# ============================================================================
# Actors
# ============================================================================


class ActorRole(str, Enum):
    """Who is acting on the back office."""

    ADMIN = "admin"
    SELLER = "seller"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor(ValueObject):
    """Acting identity resolved by the caller.

    Attributes:
        role: Actor role.
        seller_id: Seller identity, required for sellers.
    """

    role: ActorRole
    seller_id: str | None = None

    def __post_init__(self) -> None:
        if self.role == ActorRole.SELLER and not (self.seller_id and self.seller_id.strip()):
            raise ValueError("Seller actors require a seller_id")

    @classmethod
    def admin(cls) -> Self:
        return cls(role=ActorRole.ADMIN)

    @classmethod
    def seller(cls, seller_id: str) -> Self:
        return cls(role=ActorRole.SELLER, seller_id=seller_id)

    @classmethod
    def system(cls) -> Self:
        return cls(role=ActorRole.SYSTEM)

    @property
    def is_privileged(self) -> bool:
        """Admins and the system are not limited to one seller's data."""
        return self.role in {ActorRole.ADMIN, ActorRole.SYSTEM}

    def __str__(self) -> str:
        if self.role == ActorRole.SELLER:
            return f"seller:{self.seller_id}"
        return self.role.value
