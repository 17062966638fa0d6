"""Tests for batched participant counting."""

import asyncio

import pytest

from upkeep.entity_store import EntityStore, SqlEntityStore
from upkeep.services.participant_counter import count_participants


class CountOnlyStore(EntityStore):
    """Store stub that only answers counts and tracks in-flight requests."""

    def __init__(self, counts, failing=()):
        self.counts = counts
        self.failing = set(failing)
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls = []

    async def count(self, criteria):
        tournament_id = criteria["tournament_id"]
        self.calls.append(tournament_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if tournament_id in self.failing:
                raise RuntimeError(f"query failed for {tournament_id}")
            return self.counts.get(tournament_id, 0)
        finally:
            self.in_flight -= 1

    async def filter(self, criteria, sort=None, limit=None):
        raise NotImplementedError

    async def list(self, sort=None, limit=None):
        raise NotImplementedError

    async def update(self, record_id, fields):
        raise NotImplementedError

    async def delete(self, record_id):
        raise NotImplementedError

    async def create(self, fields):
        raise NotImplementedError


class FailingCountStore(SqlEntityStore):
    def __init__(self, base: SqlEntityStore, failing):
        super().__init__(base.table, base.schema, base.Session)
        self.failing = set(failing)

    async def count(self, criteria):
        if criteria["tournament_id"] in self.failing:
            raise RuntimeError("query failed")
        return await super().count(criteria)


@pytest.mark.asyncio
async def test_failing_id_counts_as_zero(stores):
    for tournament_id, players in (("t1", 3), ("t2", 1)):
        for n in range(players):
            await stores.participants.create({"tournament_id": tournament_id, "username": f"p{n}"})
    store = FailingCountStore(stores.participants, {"bad"})

    counts = await count_participants(store, ["t1", "t2", "bad"])

    assert counts == {"t1": 3, "t2": 1, "bad": 0}


@pytest.mark.asyncio
async def test_batches_bound_concurrency():
    ids = [f"t{i}" for i in range(25)]
    store = CountOnlyStore({tournament_id: i for i, tournament_id in enumerate(ids)})

    counts = await count_participants(store, ids)

    assert counts == {tournament_id: i for i, tournament_id in enumerate(ids)}
    assert store.max_in_flight == 10
    assert sorted(store.calls) == sorted(ids)


@pytest.mark.asyncio
async def test_failure_does_not_abort_later_batches():
    ids = [f"t{i}" for i in range(15)]
    store = CountOnlyStore({tournament_id: 2 for tournament_id in ids}, failing={"t3"})

    counts = await count_participants(store, ids, batch_size=5)

    assert counts["t3"] == 0
    assert all(counts[tournament_id] == 2 for tournament_id in ids if tournament_id != "t3")
    assert store.max_in_flight == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("ids", [None, "t1", {"ids": ["t1"]}, [], ["", None, 0]])
async def test_nothing_to_count(ids):
    store = CountOnlyStore({})
    assert await count_participants(store, ids) == {}
    assert store.calls == []


@pytest.mark.asyncio
async def test_duplicates_are_counted_once():
    store = CountOnlyStore({"t1": 4})
    assert await count_participants(store, ["t1", "t1", "t2"]) == {"t1": 4, "t2": 0}
    assert store.calls.count("t1") == 1
