"""Exceptions raised while reconciling activities into journal entries.

All of them are fatal for the export: the first one stops processing.
"""


class ReconciliationError(Exception):
    """Base exception for activities that cannot be turned into a journal entry.

    Carries the id of the offending activity when there is one.
    """

    def __init__(self, message: str, activity_id: str | None = None):
        self.activity_id = activity_id
        super().__init__(message)


class SymbolLookupError(ReconciliationError):
    """A symbol has no display name in the registry."""

    def __init__(self, symbol: str, activity_id: str | None = None):
        self.symbol = symbol
        super().__init__(f"symbol {symbol} not present in registry", activity_id)


class ClassificationError(ReconciliationError):
    """An activity lacks fields, or carries text, needed to classify it."""

    pass


class FeeAssociationError(ReconciliationError):
    """A per-trade fee has no matching trade in its day."""

    pass


class FillMergeError(ReconciliationError):
    """Merged partial fills add up to more than the order's cumulative quantity."""

    pass
