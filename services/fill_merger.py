"""Merging of partial fills into the fill that completed their order.

The feed reports every execution of an order separately. Partial fills
are folded into the terminal fill (the one leaving nothing unfilled) of
the same order and price, so the ledger shows one trade per order.
"""

import dataclasses
import logging
from collections.abc import Iterable

from integrations.activity_protocol import Activity, TradeActivity
from services.exceptions import FillMergeError

logger = logging.getLogger(__name__)


def _find_terminal_fill(
    activities: list[Activity], partial: TradeActivity
) -> int | None:
    """Find the index of the terminal fill a partial fill belongs to.

    The whole batch is searched because the feed does not guarantee
    that the terminal fill comes after its partials.
    """
    for index, candidate in enumerate(activities):
        if (
            isinstance(candidate, TradeActivity)
            and not candidate.is_partial
            and candidate.order_id == partial.order_id
            and candidate.price == partial.price
        ):
            return index
    return None


def merge_partial_fills(activities: Iterable[Activity]) -> list[Activity]:
    """Collapse the partial fills of each order into its terminal fill.

    The terminal fill keeps its id, time, cumulative and unfilled
    quantities; its quantity grows by the quantities of the partials.
    Partial fills whose terminal fill is not part of the batch are left
    untouched. Everything else keeps its relative order.

    Raises:
        FillMergeError: If merging would exceed the order's cumulative
            quantity.
    """
    source = list(activities)
    merged_into: dict[int, list[TradeActivity]] = {}
    consumed: set[int] = set()

    for index, activity in enumerate(source):
        if not isinstance(activity, TradeActivity) or not activity.is_partial:
            continue
        terminal = _find_terminal_fill(source, activity)
        if terminal is None:
            logger.info(
                "No terminal fill for partial fill %s of order %s; leaving unmerged",
                activity.id, activity.order_id,
            )
            continue
        merged_into.setdefault(terminal, []).append(activity)
        consumed.add(index)

    result: list[Activity] = []
    for index, activity in enumerate(source):
        if index in consumed:
            continue
        partials = merged_into.get(index)
        if partials:
            activity = _merge(activity, partials)
        result.append(activity)
    return result


def _merge(terminal: TradeActivity, partials: list[TradeActivity]) -> TradeActivity:
    """Fold partial fills into their terminal fill."""
    for partial in partials:
        if partial.side != terminal.side or partial.symbol != terminal.symbol:
            raise FillMergeError(
                f"partial fill {partial.id} of order {terminal.order_id} does not "
                f"match its terminal fill in side or symbol",
                activity_id=partial.id,
            )

    quantity = terminal.quantity + sum(p.quantity for p in partials)
    if quantity > terminal.cumulative_quantity:
        raise FillMergeError(
            f"merged quantity {quantity} of order {terminal.order_id} exceeds "
            f"its cumulative quantity {terminal.cumulative_quantity}",
            activity_id=terminal.id,
        )

    logger.debug(
        "Merged %d partial fill(s) into %s (quantity %s)",
        len(partials), terminal.id, quantity,
    )
    return dataclasses.replace(terminal, quantity=quantity)
