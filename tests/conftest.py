from __future__ import annotations

from datetime import datetime

import pytest

from factories import World, build_world


@pytest.fixture
def fixed_now():
    # Monday 2026-02-02, inside Period 1.
    return datetime(2026, 2, 2, 8, 10, 0)


@pytest.fixture
def world(fixed_now) -> World:
    return build_world(fixed_now)
