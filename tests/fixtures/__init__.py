"""Test fixtures and sample data."""
from datetime import datetime, timezone
from decimal import Decimal

from integrations.activity_protocol import (
    ActivityType,
    NonTradeActivity,
    Side,
    TradeActivity,
)


def make_trade(
    id: str = "trade_001",
    order_id: str = "order_001",
    symbol: str = "SPCE",
    side: Side = Side.BUY,
    price: str = "9.33",
    quantity: str = "56",
    cumulative_quantity: str | None = None,
    unfilled_quantity: str = "0",
    transaction_time: datetime | None = None,
) -> TradeActivity:
    """Create a TradeActivity; defaults describe one complete fill."""
    return TradeActivity(
        id=id,
        order_id=order_id,
        symbol=symbol,
        side=side,
        price=Decimal(price),
        quantity=Decimal(quantity),
        cumulative_quantity=Decimal(
            cumulative_quantity if cumulative_quantity is not None else quantity
        ),
        unfilled_quantity=Decimal(unfilled_quantity),
        transaction_time=transaction_time
        or datetime(2021, 2, 23, 15, 30, tzinfo=timezone.utc),
    )


def make_non_trade(
    id: str = "nta_001",
    type: ActivityType = ActivityType.DIVIDEND,
    date: datetime | None = None,
    net_amount: str = "1.50",
    symbol: str | None = None,
    description: str | None = None,
    price: str | None = None,
    quantity: str | None = None,
) -> NonTradeActivity:
    """Create a NonTradeActivity."""
    return NonTradeActivity(
        id=id,
        type=type,
        date=date or datetime(2021, 2, 23, tzinfo=timezone.utc),
        net_amount=Decimal(net_amount),
        symbol=symbol,
        description=description,
        price=Decimal(price) if price is not None else None,
        quantity=Decimal(quantity) if quantity is not None else None,
    )


def make_fee(
    id: str = "fee_001",
    description: str | None = "TAF fee for proceed of 56 shares (1 trades) on 2021-02-23",
    net_amount: str = "-0.01",
    date: datetime | None = None,
    symbol: str | None = None,
) -> NonTradeActivity:
    """Create a FEE activity."""
    return make_non_trade(
        id=id,
        type=ActivityType.FEE,
        date=date,
        net_amount=net_amount,
        symbol=symbol,
        description=description,
    )


def on_day(day: int, hour: int = 15, minute: int = 0) -> datetime:
    """Timestamp on the given day of February 2021 (UTC)."""
    return datetime(2021, 2, day, hour, minute, tzinfo=timezone.utc)
