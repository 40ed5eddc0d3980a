# -*- coding: utf-8 -*-

import pytest

from boltons.timeutils import UTC

from apachelog.errors import InvalidTimeFormat
from apachelog.strftime import (format_apache_time,
                                compile_strftime,
                                StrftimeFormatter)

NS_PER_SEC = 10 ** 9
TS = 1635115925 * NS_PER_SEC  # 2021-10-24 22:52:05 UTC


def test_apache_time():
    assert format_apache_time(TS, tz=UTC) == '[24/Oct/2021:22:52:05 +0000]'
    assert format_apache_time(TS + 999999999, tz=UTC) == '[24/Oct/2021:22:52:05 +0000]'
    assert format_apache_time(None) == '[]'


def test_compile():
    assert compile_strftime('%Y-%m-%d') == '%Y-%m-%d'
    assert compile_strftime('no conversions') == 'no conversions'
    assert compile_strftime('100%%') == '100%%'
    assert compile_strftime('%v') == '%e-%b-%Y'

    with pytest.raises(InvalidTimeFormat):
        compile_strftime('trailing %')
    with pytest.raises(InvalidTimeFormat):
        compile_strftime('%Q')


def test_formatter():
    fmtr = StrftimeFormatter('%Y/%m/%d %H:%M:%S.%f', tz=UTC)
    assert fmtr(TS + 123456789) == '2021/10/24 22:52:05.123456'
    assert fmtr.format(None) == ''
    assert repr(fmtr) == "StrftimeFormatter('%Y/%m/%d %H:%M:%S.%f')"

    assert StrftimeFormatter('%Y%%', tz=UTC)(TS) == '2021%'
