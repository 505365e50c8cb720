import asyncio

import pytest

from playerwatch.core.error_handling import call_external
from playerwatch.core.steam_api.errors import ForbiddenError


async def returns(value):
    return value


async def raises(error):
    raise error


async def test_call_external_returns_result():
    result = await call_external("fetch", returns(42), default=0)

    assert result == 42


async def test_call_external_converts_errors_to_default():
    result = await call_external(
        "fetch", raises(RuntimeError("boom")), default=[], steam_id="1"
    )

    assert result == []


async def test_call_external_converts_auth_errors_to_default():
    result = await call_external(
        "fetch", raises(ForbiddenError("bad key", status_code=403)), default=None
    )

    assert result is None


async def test_call_external_times_out():
    result = await call_external(
        "fetch", asyncio.sleep(5, result="late"), default="default", timeout=0.05
    )

    assert result == "default"


async def test_call_external_propagates_cancellation():
    with pytest.raises(asyncio.CancelledError):
        await call_external("fetch", raises(asyncio.CancelledError()), default=None)
