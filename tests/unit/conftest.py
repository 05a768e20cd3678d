"""Unit-test fixtures: an order engine wired to in-memory storage."""

import pytest

from engine_fakes import World


@pytest.fixture
def world() -> World:
    return World()
