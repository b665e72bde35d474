"""Journal document model and serialized transactions over a sealed store."""

from .models import Day, Entry, Journal
from .transactor import JournalTransactor

__all__ = [
    "Day",
    "Entry",
    "Journal",
    "JournalTransactor",
]
