"""Alpaca brokerage API client.

This module implements the ActivityFeed protocol on top of the Alpaca
trading API (``/v2/account`` and ``/v2/account/activities``), mapping
the JSON records it returns onto the activity model.
"""

import logging
from decimal import Decimal

import httpx

from config import settings
from integrations.activity_protocol import (
    Activity,
    ActivityRequest,
    ActivityType,
    NonTradeActivity,
    Side,
    TradeActivity,
)
from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.parsing_utils import parse_decimal, parse_iso_datetime

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Alpaca"

# activity_type of order executions; every other type is a non-trade.
_FILL_ACTIVITY_TYPE = "FILL"


class AlpacaClient:
    """Wrapper around the Alpaca account activity endpoints.

    Implements the ActivityFeed protocol. Requests are issued one at a
    time and never retried; any failure is raised to the caller.
    """

    def __init__(
        self,
        key_id: str | None = None,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client with credentials.

        Args:
            key_id: API key id (defaults to settings).
            secret_key: API secret key (defaults to settings).
            base_url: API base URL (defaults to settings).
            timeout: Per-request timeout in seconds (defaults to settings).
        """
        self._key_id = key_id or settings.APCA_API_KEY_ID
        self._secret_key = secret_key or settings.APCA_API_SECRET_KEY
        self._base_url = base_url or settings.APCA_API_BASE_URL
        self._timeout = timeout or settings.REQUEST_TIMEOUT

    @property
    def provider_name(self) -> str:
        return PROVIDER_NAME

    def is_configured(self) -> bool:
        """Check if both API credentials are present."""
        return bool(self._key_id) and bool(self._secret_key)

    def _check_credentials(self) -> None:
        """Raise an error if credentials are not configured."""
        if not self.is_configured():
            raise ProviderAuthError(
                "Alpaca credentials not configured. "
                "Set APCA_API_KEY_ID and APCA_API_SECRET_KEY in the environment, "
                "a .env file, or the keychain.",
                provider_name=PROVIDER_NAME,
            )

    def _get(self, path: str, what: str, params: dict | None = None):
        """Issue a GET request and return the decoded JSON body.

        Args:
            path: Request path relative to the base URL.
            what: Description of the operation, used in error messages.
            params: Optional query parameters.
        """
        self._check_credentials()
        headers = {
            "APCA-API-KEY-ID": self._key_id,
            "APCA-API-SECRET-KEY": self._secret_key,
        }

        try:
            with httpx.Client(
                base_url=self._base_url, headers=headers, timeout=self._timeout
            ) as client:
                response = client.get(path, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise ProviderAuthError(
                    f"failed to retrieve {what}: authentication failed (HTTP {status})",
                    provider_name=PROVIDER_NAME,
                ) from exc
            raise ProviderAPIError(
                f"failed to retrieve {what}: API error (HTTP {status})",
                provider_name=PROVIDER_NAME,
                status_code=status,
            ) from exc
        except httpx.TransportError as exc:
            raise ProviderConnectionError(
                f"failed to retrieve {what}: {exc}",
                provider_name=PROVIDER_NAME,
            ) from exc
        except ValueError as exc:
            raise ProviderDataError(
                f"failed to retrieve {what}: response is not valid JSON",
                provider_name=PROVIDER_NAME,
            ) from exc

    def get_account_currency(self) -> str:
        """Fetch the currency the account reports its amounts in."""
        data = self._get("/v2/account", "account information")
        currency = data.get("currency") if isinstance(data, dict) else None
        if not currency:
            raise ProviderDataError(
                "failed to retrieve account information: no currency reported",
                provider_name=PROVIDER_NAME,
            )
        return currency

    def get_activities(self, request: ActivityRequest) -> list[Activity]:
        """Fetch one page of account activities.

        Args:
            request: The pagination cursor to fetch the page for.

        Returns:
            The page's activities in feed order; empty at end of stream.
        """
        data = self._get(
            "/v2/account/activities", "account activities", request.to_params()
        )
        if not isinstance(data, list):
            raise ProviderDataError(
                "failed to retrieve account activities: expected a list of records",
                provider_name=PROVIDER_NAME,
            )

        activities = [self._map_activity(record) for record in data]
        logger.debug(
            "Alpaca: fetched %d activities (page_token=%s)",
            len(activities), request.page_token,
        )
        return activities

    def _map_activity(self, record) -> Activity:
        """Map one JSON record onto a trade or non-trade activity."""
        if not isinstance(record, dict) or not record.get("id"):
            raise ProviderDataError(
                f"malformed activity record: {record!r}",
                provider_name=PROVIDER_NAME,
            )
        if record.get("activity_type") == _FILL_ACTIVITY_TYPE:
            return self._map_trade(record)
        return self._map_non_trade(record)

    def _map_trade(self, record: dict) -> TradeActivity:
        """Map a FILL record onto a TradeActivity."""
        activity_id = record["id"]
        try:
            side = Side(record.get("side"))
        except ValueError as exc:
            raise ProviderDataError(
                f"activity {activity_id}: unknown trade side {record.get('side')!r}",
                provider_name=PROVIDER_NAME,
            ) from exc

        transaction_time = parse_iso_datetime(record.get("transaction_time"))
        if transaction_time is None:
            raise ProviderDataError(
                f"activity {activity_id}: invalid transaction time "
                f"{record.get('transaction_time')!r}",
                provider_name=PROVIDER_NAME,
            )

        order_id = record.get("order_id")
        symbol = record.get("symbol")
        if not order_id or not symbol:
            raise ProviderDataError(
                f"activity {activity_id}: trade without order id or symbol",
                provider_name=PROVIDER_NAME,
            )

        return TradeActivity(
            id=activity_id,
            order_id=order_id,
            symbol=symbol,
            side=side,
            price=self._require_decimal(record, "price"),
            quantity=self._require_decimal(record, "qty"),
            cumulative_quantity=self._require_decimal(record, "cum_qty"),
            unfilled_quantity=self._require_decimal(record, "leaves_qty"),
            transaction_time=transaction_time,
        )

    def _map_non_trade(self, record: dict) -> NonTradeActivity:
        """Map any non-FILL record onto a NonTradeActivity."""
        activity_id = record["id"]
        activity_date = parse_iso_datetime(record.get("date"))
        if activity_date is None:
            raise ProviderDataError(
                f"activity {activity_id}: invalid date {record.get('date')!r}",
                provider_name=PROVIDER_NAME,
            )

        net_amount = parse_decimal(record.get("net_amount"))
        return NonTradeActivity(
            id=activity_id,
            type=ActivityType(record.get("activity_type")),
            date=activity_date,
            net_amount=net_amount if net_amount is not None else Decimal("0"),
            symbol=record.get("symbol") or None,
            description=record.get("description") or None,
            price=parse_decimal(record.get("price")),
            quantity=parse_decimal(record.get("qty")),
        )

    @staticmethod
    def _require_decimal(record: dict, key: str) -> Decimal:
        value = parse_decimal(record.get(key))
        if value is None:
            raise ProviderDataError(
                f"activity {record.get('id')}: invalid {key} {record.get(key)!r}",
                provider_name=PROVIDER_NAME,
            )
        return value
