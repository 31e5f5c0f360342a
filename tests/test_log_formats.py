import re
from datetime import datetime, timedelta, timezone

import pytest

import log_formats
from log_formats import new_log

NOW = datetime(2026, 4, 18, 9, 30, 0, tzinfo=timezone.utc)

IP = r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"
COMMON = (IP + r' - .+ \[18/Apr/2026:09:30:00 \+0000\] '
          r'"[A-Z]+ /\S* HTTP/\d\.\d" \d{3} \d+')

PATTERNS = {
    "apache_common": re.compile(COMMON + r"$"),
    "apache_combined": re.compile(COMMON + r' "https?://\S+" ".+"$'),
    "apache_error": re.compile(r"^\[\w{3} Apr 18 09:30:00 2026\] \[\w+:\w+\] "
                               r"\[pid \d+:tid \d+\] \[client " + IP + r":\d+\] .+$"),
    "rfc3164": re.compile(r"^<\d{1,3}>Apr 18 09:30:00 \S+ \S+\[\d+\]: .+$"),
}


@pytest.fixture(autouse=True)
def seeded():
    log_formats.seed(11)


@pytest.mark.parametrize("fmt", sorted(log_formats.FORMATS))
def test_line_shape(fmt):
    for _ in range(20):
        line = new_log(fmt, timedelta(0), now=NOW)
        assert PATTERNS[fmt].match(line), line
        assert "\n" not in line


def test_rfc3164_priority_range():
    for _ in range(50):
        line = new_log("rfc3164", timedelta(0), now=NOW)
        assert 0 <= int(line[1:line.index(">")]) <= 191


def test_delta_shifts_timestamp():
    line = new_log("rfc3164", timedelta(seconds=90), now=NOW)
    assert "Apr 18 09:31:30" in line
    line = new_log("apache_common", timedelta(hours=15), now=NOW)
    assert "[19/Apr/2026:00:30:00 +0000]" in line


def test_seed_makes_output_reproducible():
    first = [new_log("apache_combined", timedelta(0), now=NOW) for _ in range(5)]
    log_formats.seed(11)
    second = [new_log("apache_combined", timedelta(0), now=NOW) for _ in range(5)]
    assert first == second


def test_default_now_is_local_time():
    line = new_log("apache_common", timedelta(0))
    assert re.search(r"\[\d{2}/\w{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4}\]", line)


def test_unknown_format():
    with pytest.raises(ValueError, match="json is not a valid format"):
        new_log("json", timedelta(0), now=NOW)
