"""Activity model and feed protocol definitions.

This module defines the closed set of record types the activity feed
produces (trades and non-trades), the reconciled forms handed to the
ledger renderer, the pagination cursor, and the interface any feed
client must implement.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Protocol


class Side(str, Enum):
    """Side of an executed trade."""

    BUY = "buy"
    SELL = "sell"
    SHORT_SELL = "sell_short"

    @property
    def multiplier(self) -> int:
        """Direction of the share movement: +1 for buys, -1 otherwise."""
        if self is Side.BUY:
            return 1
        return -1


class ActivityType(str, Enum):
    """Type code of a non-trade activity as reported by the feed."""

    DIVIDEND = "DIV"
    FEE = "FEE"
    PASS_THRU_CHARGE = "PTC"
    ACQUISITION = "ACQ"
    STOCK_SPLIT = "SPLIT"
    CASH_DEPOSIT = "CSD"
    CASH_WITHDRAWAL = "CSW"
    INTEREST = "INT"
    JOURNAL_CASH = "JNLC"
    JOURNAL_STOCK = "JNLS"
    MERGER_ACQUISITION = "MA"
    NAME_CHANGE = "NC"
    REORG = "REORG"
    SYMBOL_CHANGE = "SC"
    SPINOFF = "SSO"
    STOCK_SPLIT_PROCEEDS = "SSP"
    TRANSACTION = "TRANS"
    MISCELLANEOUS = "MISC"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


class Direction(str, Enum):
    """Order in which the feed returns activities."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class TradeActivity:
    """A single order execution (fill or partial fill)."""

    id: str
    order_id: str
    symbol: str
    side: Side
    price: Decimal
    quantity: Decimal  # Shares executed by this fill
    cumulative_quantity: Decimal  # Shares executed for the order so far
    unfilled_quantity: Decimal  # Shares of the order still open
    transaction_time: datetime

    @property
    def is_partial(self) -> bool:
        return self.unfilled_quantity != 0


@dataclass(frozen=True)
class NonTradeActivity:
    """Any activity that is not an order execution."""

    id: str
    type: ActivityType
    date: datetime
    net_amount: Decimal
    symbol: str | None = None
    description: str | None = None
    price: Decimal | None = None
    quantity: Decimal | None = None


Activity = TradeActivity | NonTradeActivity


@dataclass(frozen=True)
class ReconciledTrade:
    """A trade together with the regulatory fees it was billed."""

    trade: TradeActivity
    fees: tuple[NonTradeActivity, ...] = ()


@dataclass(frozen=True)
class ReconciledNonTrade:
    """A non-trade activity that stands on its own in the ledger."""

    activity: NonTradeActivity


ReconciledActivity = ReconciledTrade | ReconciledNonTrade


def activity_time(activity: Activity) -> datetime:
    """Return the timestamp an activity is ordered by."""
    if isinstance(activity, TradeActivity):
        return activity.transaction_time
    return activity.date


def activity_date(activity: Activity) -> date:
    """Return the UTC calendar day an activity belongs to."""
    return activity_time(activity).astimezone(timezone.utc).date()


@dataclass
class ActivityRequest:
    """Pagination cursor for the activity feed.

    The page token only ever moves forward; it is set to the id of the
    last record of each non-empty page.
    """

    direction: Direction = Direction.ASC
    after: datetime | None = None
    page_token: str | None = None
    page_size: int | None = None

    def to_params(self) -> dict[str, str]:
        """Build the query parameters for one page request."""
        params = {"direction": self.direction.value}
        if self.after is not None:
            params["after"] = self.after.isoformat()
        if self.page_token is not None:
            params["page_token"] = self.page_token
        if self.page_size is not None:
            params["page_size"] = str(self.page_size)
        return params


class ActivityFeed(Protocol):
    """Protocol that an activity feed client must implement."""

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g. 'Alpaca')."""
        ...

    def get_account_currency(self) -> str:
        """Fetch the currency the account reports amounts in.

        Raises:
            ProviderError: If the request fails.
        """
        ...

    def get_activities(self, request: ActivityRequest) -> list[Activity]:
        """Fetch one page of activities for the given cursor.

        An empty list signals the end of the stream.

        Raises:
            ProviderError: If the request fails or the page is malformed.
        """
        ...
