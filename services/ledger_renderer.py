"""Rendering of reconciled activities as Ledger journal entries.

Each reconciled activity becomes one plain-text block of the form::

    2021-02-23 * Some Company Inc
      Assets:Investments:Alpaca:Stock                          56 SOME @ 9.33 USD
      Expenses:Broker:FINRA TAF                                     0.01 USD
      Assets:Alpaca Brokerage                                    -522.49 USD

Blocks are separated by a blank line.
"""

import logging
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import TextIO

from integrations.activity_protocol import (
    ActivityType,
    NonTradeActivity,
    ReconciledActivity,
    ReconciledTrade,
    Side,
    TradeActivity,
    activity_date,
)
from services.exceptions import ClassificationError, SymbolLookupError
from services.fee_service import FeeCategory, classify_fee

logger = logging.getLogger(__name__)

BROKER_NAME = "Alpaca Securities LLC"

_ACCOUNT_WIDTH = 51
_QUANTITY_WIDTH = 13
_AMOUNT_WIDTH = 15

_CASH_MERGER_PATTERN = re.compile(r"Cash Merger \$(\d[\d,]*(?:\.\d+)?)")


@dataclass(frozen=True)
class LedgerAccounts:
    """Names of the ledger accounts postings are made against."""

    investment: str
    brokerage: str
    brokerage_fee: str
    dividend: str
    sec_fee: str
    finra_taf: str
    interest: str
    transfer: str

    def fee_account(self, category: FeeCategory) -> str:
        if category is FeeCategory.TAF:
            return self.finra_taf
        if category is FeeCategory.REG:
            return self.sec_fee
        return self.brokerage_fee


def format_amount(value: Decimal, currency: str) -> str:
    """Format a monetary value with at least two fractional digits.

    More digits are kept when the exact value has them.
    """
    normalized = value.normalize()
    if normalized.as_tuple().exponent > -2:
        normalized = normalized.quantize(Decimal("0.01"))
    if normalized == 0:
        normalized = abs(normalized)
    return f"{normalized:f} {currency}"


def format_quantity(value: Decimal) -> str:
    """Format a share quantity without exponent or trailing zeros."""
    normalized = value.normalize()
    if normalized == 0:
        normalized = abs(normalized)
    return f"{normalized:f}"


class LedgerRenderer:
    """Turns reconciled activities into journal blocks.

    Symbols are resolved to display names through the registry; a
    missing symbol is an error. Output goes to ``out`` (stdout unless
    given).
    """

    def __init__(
        self,
        accounts: LedgerAccounts,
        registry: Mapping[str, str],
        currency: str = "USD",
        out: TextIO | None = None,
    ):
        self.accounts = accounts
        self.registry = registry
        self.currency = currency
        self._out = out

    def write(self, reconciled: ReconciledActivity) -> bool:
        """Render an activity and write its block to the output stream.

        Returns:
            True if a block was written, False if the activity is skipped.
        """
        block = self.render(reconciled)
        if block is None:
            return False
        out = self._out or sys.stdout
        out.write(block + "\n")
        return True

    def render(self, reconciled: ReconciledActivity) -> str | None:
        """Render one reconciled activity as a journal block.

        Returns:
            The block (ending in a newline), or None for activities that
            produce no journal entry.

        Raises:
            SymbolLookupError: If a needed symbol is not in the registry.
            ClassificationError: If the activity lacks required fields.
        """
        if isinstance(reconciled, ReconciledTrade):
            return self._render_trade(reconciled.trade, reconciled.fees)

        activity = reconciled.activity
        handler = self._NON_TRADE_HANDLERS.get(activity.type)
        if handler is None:
            logger.info(
                "Ignoring activity %s of unsupported type %s",
                activity.id, activity.type.value,
            )
            return None
        return handler(self, activity)

    # ------------------------------------------------------------------
    # Building blocks

    def _lookup_name(self, symbol: str, activity_id: str) -> str:
        name = self.registry.get(symbol)
        if name is None:
            raise SymbolLookupError(symbol, activity_id=activity_id)
        return name

    def _share_posting(
        self, account: str, quantity: Decimal, symbol: str, price: Decimal
    ) -> str:
        return (
            f"  {account:<{_ACCOUNT_WIDTH}}  "
            f"{format_quantity(quantity):>{_QUANTITY_WIDTH}} {symbol} @ "
            f"{format_amount(price, self.currency)}"
        )

    def _cash_posting(self, account: str, amount: Decimal) -> str:
        return (
            f"  {account:<{_ACCOUNT_WIDTH}}    "
            f"{format_amount(amount, self.currency):>{_AMOUNT_WIDTH}}"
        )

    @staticmethod
    def _elided_posting(account: str) -> str:
        return f"  {account}"

    @staticmethod
    def _block(
        activity, narration: str, postings: list[str], comment: str | None = None
    ) -> str:
        lines = [f"{activity_date(activity).isoformat()} * {narration}"]
        if comment:
            lines.append(f"  ; {comment}")
        lines.extend(postings)
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Trades

    def _render_trade(
        self,
        trade: TradeActivity,
        fees: tuple[NonTradeActivity, ...] = (),
        comment: str | None = None,
        cash_total: Decimal | None = None,
    ) -> str:
        """Render a trade; ``cash_total`` overrides the computed brokerage amount."""
        name = self._lookup_name(trade.symbol, trade.id)
        multiplier = trade.side.multiplier

        postings = [
            self._share_posting(
                self.accounts.investment,
                trade.quantity * multiplier,
                trade.symbol,
                trade.price,
            )
        ]
        if cash_total is None:
            total = -(trade.price * trade.quantity * multiplier)
        else:
            total = cash_total
        for fee in fees:
            account = self.accounts.fee_account(classify_fee(fee).category)
            postings.append(self._cash_posting(account, -fee.net_amount))
            total += fee.net_amount
        postings.append(self._cash_posting(self.accounts.brokerage, total))

        return self._block(trade, name, postings, comment)

    # ------------------------------------------------------------------
    # Non-trades

    def _render_dividend(self, activity: NonTradeActivity) -> str:
        if not activity.symbol:
            raise ClassificationError(
                f"dividend {activity.id} does not have an associated symbol",
                activity_id=activity.id,
            )
        name = self._lookup_name(activity.symbol, activity.id)
        return self._block(
            activity,
            name,
            [
                self._elided_posting(self.accounts.dividend),
                self._cash_posting(self.accounts.brokerage, activity.net_amount),
            ],
        )

    def _render_cash_flow(self, activity: NonTradeActivity, account: str) -> str:
        return self._block(
            activity,
            BROKER_NAME,
            [
                self._elided_posting(account),
                self._cash_posting(self.accounts.brokerage, activity.net_amount),
            ],
            comment=activity.description,
        )

    def _render_interest(self, activity: NonTradeActivity) -> str:
        return self._render_cash_flow(activity, self.accounts.interest)

    def _render_transfer(self, activity: NonTradeActivity) -> str:
        return self._render_cash_flow(activity, self.accounts.transfer)

    def _render_pass_thru_charge(self, activity: NonTradeActivity) -> str:
        return self._render_cash_flow(activity, self.accounts.brokerage_fee)

    def _render_fee(self, activity: NonTradeActivity) -> str:
        account = self.accounts.fee_account(classify_fee(activity).category)
        return self._block(
            activity,
            BROKER_NAME,
            [
                self._cash_posting(account, -activity.net_amount),
                self._cash_posting(self.accounts.brokerage, activity.net_amount),
            ],
            comment=activity.description,
        )

    def _render_acquisition(self, activity: NonTradeActivity) -> str | None:
        # The broker reports acquisitions of positions it already closed
        # with a zero amount.
        if activity.net_amount == 0:
            logger.info("Dropping zero-amount acquisition %s", activity.id)
            return None

        if not activity.symbol:
            raise ClassificationError(
                f"acquisition {activity.id} does not have an associated symbol",
                activity_id=activity.id,
            )
        match = _CASH_MERGER_PATTERN.search(activity.description or "")
        if match is None:
            raise ClassificationError(
                f"unable to extract share price from acquisition {activity.id} "
                f"description '{activity.description}'",
                activity_id=activity.id,
            )

        price = Decimal(match.group(1).replace(",", ""))
        if price == 0:
            raise ClassificationError(
                f"acquisition {activity.id} reports a share price of zero",
                activity_id=activity.id,
            )
        quantity = activity.net_amount / price
        trade = self._synthetic_trade(activity, activity.symbol, price, -quantity)
        # The cash received is booked as reported, the quantity may not terminate.
        return self._render_trade(
            trade, comment=activity.description, cash_total=activity.net_amount
        )

    def _render_stock_split(self, activity: NonTradeActivity) -> str:
        if not activity.symbol or activity.price is None or activity.quantity is None:
            raise ClassificationError(
                f"stock split {activity.id} lacks symbol, price, or quantity",
                activity_id=activity.id,
            )
        trade = self._synthetic_trade(
            activity, activity.symbol, activity.price, activity.quantity
        )
        return self._render_trade(trade, comment=activity.description)

    @staticmethod
    def _synthetic_trade(
        activity: NonTradeActivity, symbol: str, price: Decimal, quantity: Decimal
    ) -> TradeActivity:
        """Express a position change as a completed trade.

        A positive quantity adds shares to the position, a negative one
        removes them.
        """
        return TradeActivity(
            id=activity.id,
            order_id=activity.id,
            symbol=symbol,
            side=Side.BUY if quantity >= 0 else Side.SELL,
            price=price,
            quantity=abs(quantity),
            cumulative_quantity=abs(quantity),
            unfilled_quantity=Decimal("0"),
            transaction_time=activity.date,
        )

    _NON_TRADE_HANDLERS = {
        ActivityType.DIVIDEND: _render_dividend,
        ActivityType.FEE: _render_fee,
        ActivityType.PASS_THRU_CHARGE: _render_pass_thru_charge,
        ActivityType.ACQUISITION: _render_acquisition,
        ActivityType.STOCK_SPLIT: _render_stock_split,
        ActivityType.CASH_DEPOSIT: _render_transfer,
        ActivityType.CASH_WITHDRAWAL: _render_transfer,
        ActivityType.INTEREST: _render_interest,
    }
