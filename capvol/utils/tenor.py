# -*- coding: utf-8 -*-
import re
import unicodedata
import pandas as pd
from pandas import DateOffset


def clean_tenor(tenor: str) -> str:
    if not isinstance(tenor, str):
        raise TypeError(f"'tenor' {tenor} must be a string. Instead is type {type(tenor)}")

    tenor = unicodedata.normalize('NFKD', tenor)
    tenor = tenor.lower().replace(' ', '').replace('/', '').replace('\n', '').replace('\r', '')

    replacements = {
        'd': ['days', 'day'],
        'w': ['weeks', 'week'],
        'm': ['months', 'month', 'mon'],
        'y': ['years', 'year', 'yrs', 'yr'],
    }

    pattern = re.compile('|'.join(map(re.escape, [val for sublist in replacements.values() for val in sublist])))
    tenor = pattern.sub(lambda match: next(k for k, v in replacements.items() if match.group(0) in v), tenor)

    return tenor


def tenor_to_date_offset(tenor: str) -> pd.DateOffset:
    tenor = clean_tenor(tenor)

    if re.search(r'^\d+d$', tenor) is not None:
        offset = DateOffset(days=int(tenor[:-1]))
    elif re.search(r'^\d+w$', tenor) is not None:
        offset = DateOffset(weeks=int(tenor[:-1]))
    elif re.search(r'^\d+m$', tenor) is not None:
        offset = DateOffset(months=int(tenor[:-1]))
    elif re.search(r'^\d+y$', tenor) is not None:
        offset = DateOffset(years=int(tenor[:-1]))
    # Years and months; 1Y3M, 10Y6M
    elif re.search(r'^\d+y\d+m$', tenor) is not None:
        years, months = tenor[:-1].split('y')
        offset = DateOffset(months=int(years) * 12 + int(months))
    else:
        raise ValueError(f"invalid 'tenor' value: {tenor}")

    return offset


def tenor_to_months(tenor: str) -> float:
    """Approximate length of the tenor in months, used to order expiries."""
    offset = tenor_to_date_offset(tenor)
    kwds = offset.kwds
    return kwds.get('years', 0) * 12 + kwds.get('months', 0) + kwds.get('weeks', 0) * 7 / 30.4375 \
        + kwds.get('days', 0) / 30.4375
