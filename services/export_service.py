"""Export service - drives the feed through reconciliation into the ledger."""

import logging
from datetime import date

from integrations.activity_protocol import ActivityFeed, ActivityRequest, Direction
from integrations.parsing_utils import date_to_datetime
from services.day_batcher import iter_day_batches
from services.fee_service import associate_fees, keep_fees_separate
from services.fill_merger import merge_partial_fills
from services.ledger_renderer import LedgerRenderer

logger = logging.getLogger(__name__)


class LedgerExportService:
    """Exports the activity history of one account as journal entries.

    Processing is strictly sequential: a day is fetched, merged,
    reconciled and written before the next day is read. The first error
    aborts the export; blocks written before it stay written.
    """

    def __init__(
        self,
        feed: ActivityFeed,
        renderer: LedgerRenderer,
        force_separate_fees: bool = False,
        page_size: int | None = None,
    ):
        """Initialize the service.

        Args:
            feed: Source of account activities.
            renderer: Sink for the reconciled activities.
            force_separate_fees: Render every fee as its own entry instead
                of attaching per-trade fees to their trades.
            page_size: Records to request per page (feed default if None).
        """
        self.feed = feed
        self.renderer = renderer
        self.force_separate_fees = force_separate_fees
        self.page_size = page_size

    def export(self, begin: date | None = None) -> int:
        """Write journal entries for all activities on or after ``begin``.

        Returns:
            Number of journal blocks written.

        Raises:
            ProviderError: If talking to the feed fails.
            ReconciliationError: If an activity cannot be reconciled or
                rendered.
        """
        self.renderer.currency = self.feed.get_account_currency()

        request = ActivityRequest(
            direction=Direction.ASC,
            after=date_to_datetime(begin) if begin is not None else None,
            page_size=self.page_size,
        )

        written = 0
        days = 0
        for day in iter_day_batches(self.feed, request):
            days += 1
            merged = merge_partial_fills(day)
            if self.force_separate_fees:
                reconciled = keep_fees_separate(merged)
            else:
                reconciled = associate_fees(merged)

            for entry in reconciled:
                if self.renderer.write(entry):
                    written += 1

        logger.info(
            "%s: exported %d journal entries covering %d days",
            self.feed.provider_name, written, days,
        )
        return written
