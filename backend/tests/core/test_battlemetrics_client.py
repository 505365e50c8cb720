import httpx
import pytest

from playerwatch.core.battlemetrics import BattlemetricsClient, BattlemetricsError


def make_client(handler, api_key=None):
    return BattlemetricsClient(
        api_key=api_key,
        base_url="https://bm.test",
        transport=httpx.MockTransport(handler),
    )


async def test_lookup_name():
    def handler(request):
        assert request.url.path == "/players/123"
        return httpx.Response(
            200, json={"data": {"id": "123", "attributes": {"name": "Bob"}}}
        )

    async with make_client(handler) as client:
        assert await client.lookup_name("123") == "Bob"


async def test_lookup_name_without_name_is_none():
    def handler(request):
        return httpx.Response(200, json={"data": {"id": "123", "attributes": {}}})

    async with make_client(handler) as client:
        assert await client.lookup_name("123") is None


async def test_lookup_server_builds_server_key():
    def handler(request):
        assert request.url.path == "/servers/987"
        return httpx.Response(
            200,
            json={
                "data": {
                    "id": "987",
                    "attributes": {"name": "Rustopia EU", "ip": "1.2.3.4", "port": 28015},
                }
            },
        )

    async with make_client(handler) as client:
        server = await client.lookup_server("987")

    assert server.server_id == "987"
    assert server.name == "Rustopia EU"
    assert server.server_key == "1.2.3.4-28015"


async def test_not_found_raises_with_status():
    def handler(request):
        return httpx.Response(404, json={"errors": []})

    async with make_client(handler) as client:
        with pytest.raises(BattlemetricsError) as exc_info:
            await client.lookup_server("missing")

    assert exc_info.value.status_code == 404


async def test_missing_data_object_raises():
    def handler(request):
        return httpx.Response(200, json={"meta": {}})

    async with make_client(handler) as client:
        with pytest.raises(BattlemetricsError):
            await client.lookup_name("1")


async def test_api_key_sent_as_bearer_token():
    seen = {}

    def handler(request):
        seen["authorization"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"data": {"attributes": {"name": "Bob"}}})

    async with make_client(handler, api_key="token") as client:
        await client.lookup_name("1")

    assert seen["authorization"] == "Bearer token"
