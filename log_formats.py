"""Fake log lines for the formats logforge can produce."""

from datetime import datetime, timedelta
from typing import Optional

from faker import Faker

fake = Faker()

HTTP_METHODS = ["GET", "GET", "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"]
HTTP_VERSIONS = ["HTTP/1.0", "HTTP/1.1", "HTTP/2.0"]
STATUS_CODES = [200, 200, 200, 201, 204, 301, 302, 304, 400, 401, 403, 404, 500, 502, 503]
ERROR_LEVELS = ["emerg", "alert", "crit", "error", "warn", "notice", "info", "debug"]
ERROR_MODULES = ["core", "mpm_event", "proxy", "ssl", "rewrite", "authz_core", "php7"]


def seed(value) -> None:
    fake.seed_instance(value)


def _path() -> str:
    return "/" + fake.uri_path(deep=fake.random_int(1, 4))


def apache_common(ts: datetime) -> str:
    return (
        f'{fake.ipv4()} - {fake.user_name()} [{ts.strftime("%d/%b/%Y:%H:%M:%S %z")}] '
        f'"{fake.random_element(HTTP_METHODS)} {_path()} {fake.random_element(HTTP_VERSIONS)}" '
        f'{fake.random_element(STATUS_CODES)} {fake.random_int(0, 30000)}'
    )


def apache_combined(ts: datetime) -> str:
    return f'{apache_common(ts)} "{fake.url()}" "{fake.user_agent()}"'


def apache_error(ts: datetime) -> str:
    return (
        f'[{ts.strftime("%a %b %d %H:%M:%S %Y")}] '
        f'[{fake.random_element(ERROR_MODULES)}:{fake.random_element(ERROR_LEVELS)}] '
        f'[pid {fake.random_int(1, 10000)}:tid {fake.random_int(1, 10000)}] '
        f'[client {fake.ipv4()}:{fake.port_number()}] {fake.sentence(nb_words=10)}'
    )


def rfc3164(ts: datetime) -> str:
    # PRI = facility * 8 + severity
    priority = fake.random_int(0, 23) * 8 + fake.random_int(0, 7)
    return (
        f'<{priority}>{ts.strftime("%b %d %H:%M:%S")} {fake.hostname(levels=0)} '
        f'{fake.word()}[{fake.random_int(1, 10000)}]: {fake.sentence(nb_words=10)}'
    )


FORMATS = {
    "apache_common": apache_common,
    "apache_combined": apache_combined,
    "apache_error": apache_error,
    "rfc3164": rfc3164,
}


def new_log(fmt: str, delta: timedelta, now: Optional[datetime] = None) -> str:
    """
    Build one log line of format ``fmt`` stamped ``delta`` after ``now``
    (local time when omitted). The line carries no trailing newline.
    """
    if fmt not in FORMATS:
        raise ValueError(f"{fmt} is not a valid format")
    formatter = FORMATS[fmt]
    if now is None:
        now = datetime.now().astimezone()
    return formatter(now + delta)
