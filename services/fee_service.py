"""Fee classification and fee-to-trade association.

Regulatory fees arrive as activities of their own, disconnected from the
trades that caused them. Their free-text description tells what kind of
fee they are and, for per-trade fees, which trade they were billed for:

- "TAF fee for proceed of 56 shares ..." (FINRA trading activity fee)
- "REG fee for proceed of $522.48 ..." (SEC fee)
- "ADR Fees ..." (depositary receipt fee, not tied to a trade)
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from integrations.activity_protocol import (
    Activity,
    ActivityType,
    NonTradeActivity,
    ReconciledActivity,
    ReconciledNonTrade,
    ReconciledTrade,
    TradeActivity,
)
from services.exceptions import ClassificationError, FeeAssociationError

logger = logging.getLogger(__name__)

_NUMBER = r"(\d[\d,]*(?:\.\d+)?)"
_TAF_PATTERN = re.compile(rf"^TAF fee for proceed of {_NUMBER} shares")
_REG_PATTERN = re.compile(rf"^REG fee for proceed of \${_NUMBER}")
_ADR_PATTERN = re.compile(r"^ADR Fees")


class FeeCategory(str, Enum):
    """Kind of fee, as told by its description."""

    TAF = "taf"
    REG = "reg"
    ADR = "adr"


@dataclass(frozen=True)
class FeeClassification:
    """Category of a fee plus the trade reference extracted from it."""

    category: FeeCategory
    quantity: Decimal | None = None  # TAF: shares the fee was billed for
    proceeds: Decimal | None = None  # REG: trade proceeds the fee was billed for

    @property
    def per_trade(self) -> bool:
        return self.category is not FeeCategory.ADR


def _to_decimal(text: str) -> Decimal:
    return Decimal(text.replace(",", ""))


def classify_fee(fee: NonTradeActivity) -> FeeClassification:
    """Classify a fee activity by its description.

    Raises:
        ClassificationError: If the fee has no description or the
            description matches none of the known fee kinds.
    """
    description = fee.description
    if not description:
        raise ClassificationError(
            f"fee {fee.id} does not have a description", activity_id=fee.id
        )

    match = _TAF_PATTERN.match(description)
    if match:
        return FeeClassification(FeeCategory.TAF, quantity=_to_decimal(match.group(1)))

    match = _REG_PATTERN.match(description)
    if match:
        return FeeClassification(FeeCategory.REG, proceeds=_to_decimal(match.group(1)))

    if _ADR_PATTERN.match(description):
        return FeeClassification(FeeCategory.ADR)

    raise ClassificationError(
        f"unable to classify fee {fee.id}: unrecognized description '{description}'",
        activity_id=fee.id,
    )


def fee_matches_trade(classification: FeeClassification, trade: TradeActivity) -> bool:
    """Check whether a per-trade fee was billed for the given trade.

    TAF fees reference the trade's share count, REG fees its proceeds.
    Proceeds are rounded half up to the precision the fee reports them with.
    """
    if classification.quantity is not None:
        return trade.quantity == classification.quantity
    if classification.proceeds is not None:
        proceeds = trade.price * trade.quantity
        return proceeds.quantize(classification.proceeds, rounding=ROUND_HALF_UP) == (
            classification.proceeds
        )
    return False


def _is_fee(activity: Activity) -> bool:
    return isinstance(activity, NonTradeActivity) and activity.type is ActivityType.FEE


def associate_fees(activities: Iterable[Activity]) -> list[ReconciledActivity]:
    """Attach per-trade fees to the trades they were billed for.

    Every trade of the batch becomes a ReconciledTrade carrying its
    fees; every other activity, ADR fees included, stays standalone.
    A fee may precede or follow its trade, so the whole batch is
    searched and the first matching trade that has no fee of the same
    kind yet wins.

    Raises:
        ClassificationError: If a fee cannot be classified.
        FeeAssociationError: If a per-trade fee matches no trade.
    """
    source = list(activities)
    trade_indices = [
        index for index, activity in enumerate(source)
        if isinstance(activity, TradeActivity)
    ]
    attached: dict[int, list[NonTradeActivity]] = {}
    attached_kinds: dict[int, set[FeeCategory]] = {}
    consumed: set[int] = set()

    for index, activity in enumerate(source):
        if not _is_fee(activity):
            continue
        classification = classify_fee(activity)
        if not classification.per_trade:
            continue

        for trade_index in trade_indices:
            kinds = attached_kinds.setdefault(trade_index, set())
            if classification.category in kinds:
                continue
            if fee_matches_trade(classification, source[trade_index]):
                attached.setdefault(trade_index, []).append(activity)
                kinds.add(classification.category)
                consumed.add(index)
                break
        else:
            raise FeeAssociationError(
                f"unable to find trade for fee {activity.id} "
                f"('{activity.description}')",
                activity_id=activity.id,
            )

    result: list[ReconciledActivity] = []
    for index, activity in enumerate(source):
        if index in consumed:
            continue
        if isinstance(activity, TradeActivity):
            result.append(ReconciledTrade(activity, tuple(attached.get(index, ()))))
        else:
            result.append(ReconciledNonTrade(activity))

    if consumed:
        logger.debug("Attached %d fee(s) to trades", len(consumed))
    return result


def keep_fees_separate(activities: Iterable[Activity]) -> list[ReconciledActivity]:
    """Wrap activities without associating any fee with a trade."""
    return [
        ReconciledTrade(activity) if isinstance(activity, TradeActivity)
        else ReconciledNonTrade(activity)
        for activity in activities
    ]
