# -*- coding: utf-8 -*-
from .daycount import day_count, year_frac, to_datetimeindex
from .tenor import clean_tenor, tenor_to_date_offset
from .schedule import get_schedule
