"""Pytest configuration and shared fixtures for lemonblocks tests."""

import io

import pytest

from lemonblocks import markup
from tests.fixtures.fakes import FakeEventSource
from tests.fixtures.manual_scheduler import ManualScheduler


@pytest.fixture
def scheduler():
    """Manual-clock scheduler with no fault handler (faults re-raise)."""
    return ManualScheduler()


@pytest.fixture
def source():
    """Ready fake event source."""
    return FakeEventSource()


@pytest.fixture
def stream():
    """In-memory stand-in for stdout."""
    return io.StringIO()


@pytest.fixture(autouse=True)
def reset_urgent_color():
    """The daemon overrides the urgent color globally; restore it per test."""
    original = markup.URGENT_COLOR
    yield
    markup.URGENT_COLOR = original
