import asyncio

import pytest

from playerwatch.core.batch import BatchClient


def make_ids(count):
    return [f"7656119800000{i:04d}" for i in range(count)]


def test_chunks_partition_250_ids():
    """250 ids are split into chunks of 100, 100 and 50"""
    client = BatchClient(chunk_size=100)

    chunks = client.chunks(make_ids(250))

    assert [len(chunk) for chunk in chunks] == [100, 100, 50]


def test_chunks_drop_duplicates_keeping_order():
    client = BatchClient(chunk_size=2)

    chunks = client.chunks(["a", "b", "a", "c", "b"])

    assert chunks == [["a", "b"], ["c"]]


def test_invalid_chunk_size_rejected():
    with pytest.raises(ValueError):
        BatchClient(chunk_size=0)


async def test_run_merges_chunk_results():
    """Each chunk is looked up once and the maps are merged"""
    ids = make_ids(250)
    calls = []

    async def lookup(chunk):
        calls.append(list(chunk))
        return {steam_id: f"name-{steam_id}" for steam_id in chunk}

    result = await BatchClient(chunk_size=100).run(ids, lookup)

    assert len(calls) == 3
    assert sorted(len(chunk) for chunk in calls) == [50, 100, 100]
    assert len(result) == 250
    assert result[ids[0]] == f"name-{ids[0]}"


async def test_failed_chunk_only_loses_its_own_ids():
    """The middle chunk raising leaves the other 150 ids resolved"""
    ids = make_ids(250)
    failing = set(ids[100:200])

    async def lookup(chunk):
        if failing.intersection(chunk):
            raise RuntimeError("upstream failure")
        return {steam_id: steam_id for steam_id in chunk}

    result = await BatchClient(chunk_size=100).run(ids, lookup)

    assert len(result) == 150
    assert not failing.intersection(result)
    assert ids[0] in result and ids[-1] in result


async def test_chunk_timeout_contributes_empty_map():
    async def lookup(chunk):
        if "slow" in chunk:
            await asyncio.sleep(5)
        return {item: item for item in chunk}

    client = BatchClient(chunk_size=1, timeout=0.05)
    result = await client.run(["fast", "slow"], lookup)

    assert result == {"fast": "fast"}


async def test_chunk_returning_none_is_empty():
    async def lookup(chunk):
        return None

    result = await BatchClient().run(["a", "b"], lookup)

    assert result == {}


async def test_no_ids_means_no_calls():
    calls = []

    async def lookup(chunk):
        calls.append(chunk)
        return {}

    result = await BatchClient().run([], lookup)

    assert result == {}
    assert calls == []


async def test_concurrency_is_bounded():
    in_flight = 0
    peak = 0

    async def lookup(chunk):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return {item: item for item in chunk}

    client = BatchClient(chunk_size=1, max_concurrency=2)
    result = await client.run([str(i) for i in range(6)], lookup)

    assert len(result) == 6
    assert peak <= 2
