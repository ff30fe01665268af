"""
Unit tests for the external call helpers.
"""

import asyncio

import pytest

from waste_ticketing.tasks import resolve_with_fallback, run_blocking


async def _fail():
    raise RuntimeError("service down")


async def _succeed():
    return {"plastic": 1}


@pytest.mark.asyncio
async def test_result_is_returned():
    assert await resolve_with_fallback(_succeed(), None, "classification") == {"plastic": 1}


@pytest.mark.asyncio
async def test_failure_uses_fallback():
    assert await resolve_with_fallback(_fail(), "", "QR code generation") == ""


@pytest.mark.asyncio
async def test_blocking_call_runs_in_thread():
    assert await resolve_with_fallback(run_blocking(sum, [1, 2, 3]), 0, "sum") == 6


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed():
    async def _cancelled():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await resolve_with_fallback(_cancelled(), None, "classification")
