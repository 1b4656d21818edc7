"""Tests for DataLoader batching, deduplication and loading."""

from __future__ import annotations

import asyncio

import pytest

from batchloader import DataLoader, Err, InvalidArgument, Ok
from batchloader.testing import RecordingBatchFn


# ─────────────────────────────────────────────────────────────────────────────
# load
# ─────────────────────────────────────────────────────────────────────────────


class TestLoad:
    @pytest.mark.asyncio
    async def test_single_value(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)
        assert await loader.load(2) == 4

    @pytest.mark.asyncio
    async def test_same_turn_loads_share_one_batch(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        results = await asyncio.gather(loader.load(1), loader.load(2), loader.load(3))

        assert results == [2, 4, 6]
        double.assert_called_once_with([1, 2, 3])

    @pytest.mark.asyncio
    async def test_repeated_loads_are_cached(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        first = await asyncio.gather(loader.load(1), loader.load(2))
        second = await asyncio.gather(loader.load(1), loader.load(2))

        assert first == second == [2, 4]
        assert double.call_count == 1
        assert loader.stats.cache_hits == 2

    @pytest.mark.asyncio
    async def test_identical_keys_coalesce(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        a, b = await asyncio.gather(loader.load(1), loader.load(1))

        assert a == b == 2
        double.assert_called_once_with([1])

    @pytest.mark.asyncio
    async def test_max_batch_size_spills_into_next_batch(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double, max_batch_size=2)

        results = await asyncio.gather(*(loader.load(k) for k in (1, 2, 3, 4)))

        assert results == [2, 4, 6, 8]
        assert double.batches == [[1, 2], [3, 4]]

    @pytest.mark.asyncio
    async def test_uneven_spill(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double, max_batch_size=2)

        await asyncio.gather(*(loader.load(k) for k in range(5)))

        assert double.batches == [[0, 1], [2, 3], [4]]
        assert loader.stats.batches == 3
        assert loader.stats.keys == 5

    @pytest.mark.asyncio
    async def test_separate_turns_make_separate_batches(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        assert await loader.load(1) == 2
        assert await loader.load(2) == 4

        assert double.batches == [[1], [2]]

    @pytest.mark.asyncio
    async def test_error_for_individual_key(self) -> None:
        error = ValueError("no such key")
        loader = DataLoader(RecordingBatchFn(compute=lambda k: error if k == 2 else k * 2))  # type: ignore[operator]

        a, b = await asyncio.gather(loader.load(1), loader.load(2), return_exceptions=True)

        assert a == 2
        assert b is error

    @pytest.mark.asyncio
    async def test_error_instance_among_values(self) -> None:
        error = LookupError("missing")
        loader = DataLoader(RecordingBatchFn(side_effect=lambda keys: [error, 4, 6]))

        results = await asyncio.gather(loader.load(1), loader.load(2), loader.load(3), return_exceptions=True)

        assert results == [error, 4, 6]

    @pytest.mark.asyncio
    async def test_result_values(self) -> None:
        error = KeyError(2)
        loader = DataLoader(RecordingBatchFn(side_effect=lambda keys: [Ok("one"), Err(error)]))

        results = await asyncio.gather(loader.load(1), loader.load(2), return_exceptions=True)

        assert results == ["one", error]

    @pytest.mark.asyncio
    async def test_none_key_rejected_synchronously(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        with pytest.raises(InvalidArgument, match="must be called with a value"):
            loader.load(None)

        with pytest.raises(TypeError):
            loader.load(None)
        double.assert_not_called()

    @pytest.mark.asyncio
    async def test_unhashable_key_needs_cache_key_fn(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        with pytest.raises(InvalidArgument, match="not hashable"):
            loader.load(["a", "b"])

    @pytest.mark.asyncio
    async def test_unhashable_key_without_cache(self) -> None:
        fetch = RecordingBatchFn(compute=len)
        loader = DataLoader(fetch, cache=False)

        assert await loader.load(["a", "b"]) == 2

    @pytest.mark.asyncio
    async def test_custom_cache_key_fn(self) -> None:
        fetch = RecordingBatchFn(compute=lambda k: k["id"] * 10)  # type: ignore[index]
        loader = DataLoader(fetch, cache_key_fn=lambda k: k["id"])

        a, b = await asyncio.gather(loader.load({"id": 1}), loader.load({"id": 1}))

        assert a == b == 10
        fetch.assert_called_once_with([{"id": 1}])
        assert await loader.load({"id": 1, "extra": True}) == 10
        assert fetch.call_count == 1

    @pytest.mark.asyncio
    async def test_sync_batch_function(self) -> None:
        loader = DataLoader(lambda keys: [k + 1 for k in keys])

        assert await asyncio.gather(loader.load(1), loader.load(2)) == [2, 3]

    @pytest.mark.asyncio
    async def test_cache_disabled_fetches_every_time(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double, cache=False)

        a, b = await asyncio.gather(loader.load(1), loader.load(1))
        c = await loader.load(1)

        assert a == b == c == 2
        assert double.batches == [[1, 1], [1]]
        assert loader.cache_map is None

    @pytest.mark.asyncio
    async def test_timeout_does_not_cancel_fetch(self) -> None:
        fetch = RecordingBatchFn(compute=lambda k: k * 2, delay=0.05)  # type: ignore[operator]
        loader = DataLoader(fetch)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(loader.load(1), 0.001)

        assert await loader.load(1) == 2
        assert fetch.call_count == 1

    @pytest.mark.asyncio
    async def test_loaders_are_independent(self, double: RecordingBatchFn) -> None:
        other = RecordingBatchFn(compute=lambda k: -k)  # type: ignore[operator]
        a, b = DataLoader(double), DataLoader(other)

        assert await asyncio.gather(a.load(1), b.load(1)) == [2, -1]
        assert double.batches == [[1]]
        assert other.batches == [[1]]


# ─────────────────────────────────────────────────────────────────────────────
# load_many
# ─────────────────────────────────────────────────────────────────────────────


class TestLoadMany:
    @pytest.mark.asyncio
    async def test_values_in_order(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        assert await loader.load_many([3, 1, 2]) == [6, 2, 4]
        double.assert_called_once_with([3, 1, 2])

    @pytest.mark.asyncio
    async def test_mixed_success_and_errors(self) -> None:
        error = ValueError("bad key")
        loader = DataLoader(RecordingBatchFn(compute=lambda k: error if k == 2 else k))

        assert await loader.load_many([1, 2, 3]) == [1, error, 3]

    @pytest.mark.asyncio
    async def test_rejected_key_captured_inline(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        results = await loader.load_many([1, None, 3])

        assert results[0] == 2 and results[2] == 6
        assert isinstance(results[1], InvalidArgument)
        double.assert_called_once_with([1, 3])

    @pytest.mark.asyncio
    async def test_shares_batch_with_plain_loads(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        many, single = await asyncio.gather(loader.load_many([1, 2]), loader.load(3))

        assert many == [2, 4] and single == 6
        double.assert_called_once_with([1, 2, 3])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keys", ["abc", b"abc", 123, {1, 2}, None])
    async def test_rejects_non_sequence(self, double: RecordingBatchFn, keys: object) -> None:
        loader = DataLoader(double)

        with pytest.raises(InvalidArgument, match="sequence of keys"):
            loader.load_many(keys)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_empty(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        assert await loader.load_many([]) == []
        double.assert_not_called()

    @pytest.mark.asyncio
    async def test_tuple_keys(self, double: RecordingBatchFn) -> None:
        loader = DataLoader(double)

        assert await loader.load_many((1, 2)) == [2, 4]

    @pytest.mark.asyncio
    async def test_results_variant(self) -> None:
        error = ValueError("bad key")
        loader = DataLoader(RecordingBatchFn(compute=lambda k: error if k == 2 else k))

        assert await loader.load_many_results([1, 2]) == [Ok(1), Err(error)]

    @pytest.mark.asyncio
    async def test_failing_cache_key_fn_captured_inline(self) -> None:
        def key_of(key: object) -> object:
            if key == "bad":
                raise KeyError(key)
            return key

        fetch = RecordingBatchFn()
        loader = DataLoader(fetch, cache_key_fn=key_of)

        results = await loader.load_many([1, "bad", 3])

        assert results[0] == 1 and results[2] == 3
        assert isinstance(results[1], KeyError)
        fetch.assert_called_once_with([1, 3])
