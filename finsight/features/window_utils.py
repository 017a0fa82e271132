"""
Time Window Utilities

Helper functions for handling time windows and day intervals
for feature engineering calculations.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from finsight.ingest.schema import Transaction

# Average days per month used to normalize window totals to monthly figures
DAYS_PER_MONTH = 30.44

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Convert various date formats to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, '%Y-%m-%d').date()


def get_date_range(days: int, reference_date: Optional[DateLike] = None) -> Tuple[date, date]:
    """
    Get start and end dates for a time window.

    Args:
        days: Number of days in the window
        reference_date: End date of the window (defaults to today)

    Returns:
        Tuple of (start_date, end_date)
    """
    end_date = to_date(reference_date) if reference_date is not None else date.today()
    start_date = end_date - timedelta(days=days)
    return start_date, end_date


def filter_transactions_by_window(
    transactions: Iterable[Transaction],
    days: int,
    reference_date: Optional[DateLike] = None
) -> List[Transaction]:
    """
    Filter transactions to only those within the specified time window.

    Args:
        transactions: List of all transactions
        days: Number of days in the window
        reference_date: End date of the window (defaults to today)

    Returns:
        List of transactions within the time window
    """
    start_date, end_date = get_date_range(days, reference_date)
    return [t for t in transactions if start_date <= to_date(t.date) <= end_date]


def sort_by_date(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Sort transactions chronologically (stable for same-day entries)."""
    return sorted(transactions, key=lambda t: to_date(t.date))


def day_gaps(dates: Iterable[DateLike]) -> List[int]:
    """Day gaps between consecutive dates, after sorting."""
    ordered = sorted(to_date(d) for d in dates)
    return [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]


def months_in_window(days: int) -> float:
    """Number of average-length months covered by a window."""
    return days / DAYS_PER_MONTH


def contains_any(text: Optional[str], keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against any keyword."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)
