"""
Shared fixtures for API-X SDK tests
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from apix_sdk import new_builder

API_KEY = "92e42e068f8f5ee625ba59e7e7144d74c24618b9631f75d70ee3cc1faa7060f1"
APP_KEY = "NTgxZWYxOWQ1YWYxNTgxOWFiY2E3YWUwY2QxNDk0M2IwNjJlM2M0MmU4YmEwMzRhMTUwNWEzN2I4ZTU3ZmJkMQ=="
FIXED_TIME = datetime(2022, 2, 12, 7, 52, 0, tzinfo=timezone.utc)
FIXED_DATE_STRING = "Sat, 12 Feb 2022 07:52:00 GMT"


def fixed_clock():
    return FIXED_TIME


def ticking_clock(start=FIXED_TIME, step=timedelta(seconds=1)):
    """Clock returning a later time on every call"""
    counter = itertools.count()
    return lambda: start + step * next(counter)


def stalling_clock(repeats, start=FIXED_TIME):
    """Clock stuck at ``start`` for ``repeats`` calls, then advancing a second per call"""
    counter = itertools.count()
    return lambda: start + timedelta(seconds=max(0, next(counter) - repeats + 1))


def counting_random_source():
    """Random source returning different, predictable bytes on every call"""
    counter = itertools.count(1)

    def source(n):
        return bytes([next(counter) % 256]) * n

    return source


@pytest.fixture
def builder():
    """Builder pointed at a test server with a fixed clock"""
    return new_builder(
        API_KEY,
        APP_KEY,
        scheme="https",
        host="api.example.com",
        port=8443,
        clock=fixed_clock,
    )


@pytest.fixture
def fresh_builder():
    """Builder whose clock advances one second per request"""
    return new_builder(
        API_KEY,
        APP_KEY,
        scheme="https",
        host="apix-test.example.com",
        clock=ticking_clock(),
    )
