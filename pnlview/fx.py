"""
Currency normalization. Converts foreign cash to the base currency using a
caller supplied date -> rate cache. Rates are never fetched here.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Union
from pnlview.datamodels import CurrencyCache
from pnlview.util import PnlviewException

logger = logging.getLogger(__name__)


class MissingRateException(PnlviewException):
    """No rate at all in the currency cache"""


def extract_date(input_date: Union[str, datetime, date]) -> str:
    """Return the ISO date string used as cache key"""
    if isinstance(input_date, str):
        try:
            date_obj = datetime.strptime(input_date, "%Y-%m-%d").date()
        except ValueError as e:
            raise ValueError(
                f"Invalid date format '{input_date}'. Use 'YYYY-MM-DD' format."
            ) from e
    elif isinstance(input_date, datetime):
        date_obj = input_date.date()
    elif isinstance(input_date, date):
        date_obj = input_date
    else:
        raise TypeError(
            f"Input must be string or datetime object, not {type(input_date)}"
        )
    return date_obj.isoformat()


def get_rate(ratedate: Union[str, datetime, date, None], cache: CurrencyCache) -> Decimal:
    """Rate for date. Falls back to the latest rate when the date is missing."""
    latest = cache.latest()
    if latest is None:
        raise MissingRateException("Currency cache is empty")
    if ratedate is None:
        return latest
    date_str = extract_date(ratedate)
    rate = cache.get(date_str)
    if rate is None:
        logger.debug(
            "No rate for %s, using latest rate %s from %s",
            date_str,
            latest,
            cache.latest_date(),
        )
        return latest
    return rate


def convert_to_base(
    ratedate: Union[str, datetime, date, None], amount: Decimal, cache: CurrencyCache
) -> Decimal:
    """Convert amount to the base currency. Rate is base units per foreign unit."""
    if not amount:
        return Decimal(0)
    return amount * get_rate(ratedate, cache)
