"""Tests for the input debouncer."""

import asyncio

import pytest

from arbroute.utils import Debouncer


class TestDebouncer:
    """Tests for Debouncer delivery."""

    @pytest.mark.asyncio
    async def test_only_last_value_delivered(self):
        delivered = []

        async def on_value(value):
            delivered.append(value)

        debouncer = Debouncer(0.01, on_value, name="test")
        debouncer.push("1")
        debouncer.push("10")
        await debouncer.wait()

        assert delivered == ["10"]
        assert debouncer.is_pending is False

    @pytest.mark.asyncio
    async def test_cancel(self):
        delivered = []

        async def on_value(value):
            delivered.append(value)

        debouncer = Debouncer(0.01, on_value)
        debouncer.push("5")
        debouncer.cancel()
        await asyncio.sleep(0.02)

        assert delivered == []
