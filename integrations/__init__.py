"""External API integrations.

This package contains:
- Activity protocol: Normalized trade and non-trade activity records
- Alpaca client: Integration with the Alpaca account activities API
"""

from integrations.activity_protocol import (
    Activity,
    ActivityFeed,
    ActivityRequest,
    NonTradeActivity,
    TradeActivity,
)
from integrations.alpaca_client import AlpacaClient

__all__ = [
    "Activity",
    "ActivityFeed",
    "ActivityRequest",
    "AlpacaClient",
    "NonTradeActivity",
    "TradeActivity",
]
