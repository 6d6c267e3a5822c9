"""Tests for the fan-out/fan-in join."""

import asyncio

import pytest

from devscope.errors import NotFound
from devscope.tasks import Outcome, join


async def _value(v, delay=0):
    await asyncio.sleep(delay)
    return v


async def _fail(delay=0):
    await asyncio.sleep(delay)
    raise NotFound("gone")


async def _bug():
    raise KeyError("bug")


class TestJoin:
    def test_preserves_order(self):
        outcomes = asyncio.run(join(_value(1, 0.02), _value(2), _value(3, 0.01)))
        assert [o.value for o in outcomes] == [1, 2, 3]

    def test_failure_is_isolated(self):
        finished = []

        async def slow_sibling():
            await asyncio.sleep(0.02)
            finished.append(True)
            return "ok"

        outcomes = asyncio.run(join(_fail(), slow_sibling()))
        assert not outcomes[0].ok
        assert isinstance(outcomes[0].error, NotFound)
        assert outcomes[1].value == "ok"
        assert finished == [True]

    def test_unwrap_reraises(self):
        outcome = Outcome(error=NotFound("gone"))
        with pytest.raises(NotFound):
            outcome.unwrap()
        assert Outcome(value=5).unwrap() == 5

    def test_unexpected_exceptions_propagate(self):
        with pytest.raises(KeyError):
            asyncio.run(join(_value(1), _bug()))

    def test_empty(self):
        assert asyncio.run(join()) == []
