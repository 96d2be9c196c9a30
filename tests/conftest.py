"""Shared fixtures for proctop tests."""

import pytest
from helpers import FakeClock, FakeTerminal, FakeTerminator


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def terminator():
    return FakeTerminator()


@pytest.fixture
def terminal():
    return FakeTerminal()
