import datetime
import uuid

import pandas as pd


def to_date(value):
    """
    Normalize a date-like value (datetime.date, ISO string, or timestamp) to datetime.date.
    """
    if isinstance(value, str):
        return pd.to_datetime(value).date()
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    raise TypeError(f"Unsupported date value: {value!r}")


def date_str(value):
    return to_date(value).isoformat()


def today(value=None):
    """Return `value` as a date, or the local calendar date when not given."""
    if value is None:
        return datetime.date.today()
    return to_date(value)


def yesterday_of(value):
    return to_date(value) - datetime.timedelta(days=1)


def new_id():
    return uuid.uuid4().hex


def now_iso():
    return datetime.datetime.now().isoformat(timespec="seconds")
