"""Day batching of the paginated activity feed.

The feed is read page by page until the buffer provably holds every
activity of its oldest calendar day, i.e. until the buffer spans two
days or the stream runs dry.
"""

import logging
from collections import deque
from dataclasses import dataclass, field

from integrations.activity_protocol import (
    Activity,
    ActivityFeed,
    ActivityRequest,
    activity_date,
)

logger = logging.getLogger(__name__)


@dataclass
class DayBatch:
    """Result of one batching step.

    ``ready`` holds every buffered activity dated like the oldest one,
    ``overflow`` everything else, to be passed into the next step.
    ``exhausted`` is set once the feed returned an empty page.
    """

    ready: list[Activity] = field(default_factory=list)
    overflow: deque[Activity] = field(default_factory=deque)
    exhausted: bool = False


def _spans_days(pending: deque[Activity]) -> bool:
    """Check whether the oldest and newest buffered activities differ in day."""
    if not pending:
        return False
    return activity_date(pending[0]) != activity_date(pending[-1])


def _partition(pending: deque[Activity]) -> DayBatch:
    """Split the buffer into the oldest day and the remainder."""
    day = activity_date(pending[0])
    batch = DayBatch()
    for activity in pending:
        if activity_date(activity) == day:
            batch.ready.append(activity)
        else:
            batch.overflow.append(activity)
    return batch


def next_day_batch(
    feed: ActivityFeed,
    request: ActivityRequest,
    pending: deque[Activity] | None = None,
) -> DayBatch:
    """Accumulate activities until one full calendar day is buffered.

    Pages are fetched only while the buffer lies within a single day.
    Each non-empty page advances ``request.page_token`` to the id of its
    last record, so no record is ever requested twice.

    Args:
        feed: The activity feed to read from.
        request: The pagination cursor; advanced in place.
        pending: Overflow of the previous step, consumed by this one.

    Returns:
        The ready day and the overflow to pass into the next call.

    Raises:
        ProviderError: If a page fetch fails. Nothing is retried.
    """
    buffer: deque[Activity] = deque(pending or ())

    while not _spans_days(buffer):
        page = feed.get_activities(request)
        if not page:
            logger.debug("Activity feed exhausted with %d buffered", len(buffer))
            return DayBatch(ready=list(buffer), exhausted=True)

        request.page_token = page[-1].id
        buffer.extend(page)

    batch = _partition(buffer)
    logger.debug(
        "Day %s ready: %d activities, %d carried over",
        activity_date(batch.ready[0]), len(batch.ready), len(batch.overflow),
    )
    return batch


def iter_day_batches(feed: ActivityFeed, request: ActivityRequest):
    """Yield the activities of the feed one calendar day at a time.

    Days without any activity are never yielded.
    """
    pending: deque[Activity] = deque()
    while True:
        batch = next_day_batch(feed, request, pending)
        if batch.ready:
            yield batch.ready
        if batch.exhausted:
            return
        pending = batch.overflow
