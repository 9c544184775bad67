import math
import pytest

from portal.errors import InvalidQueryError, PermissionDeniedError, StoreError
from portal.schemas.result import PERMISSION_DENIED_MESSAGE
from portal.services.reconcile import WinnerReconciliationEngine, chunked, clean_registration_ids
from portal.store.base import FieldFilter, in_

from fakes import InMemoryStore

REEL = "reel-it-feel-it"


def _seed_reels(store: InMemoryStore, n: int):
    for i in range(n):
        store.put_submission(
            f"s{i}",
            competition_id=REEL,
            competition_name="Reel It. Feel It.",
            registration_id=f"R{i}",
            post_link=f"https://instagram.com/reel/{i}",
            submitted_at=f"2025-09-01T10:{i % 60:02d}:00Z",
        )


def _winners(store: InMemoryStore) -> set[str]:
    return {k for k, v in store.collections["submissions"].items() if v.get("is_winner")}


def test_clean_registration_ids_strips_dedupes_and_keeps_order():
    assert clean_registration_ids([" R2 ", "R1", "", None, "R2", "  ", 12345]) == ["R2", "R1", "12345"]


def test_chunked_sizes():
    assert [len(c) for c in chunked([str(i) for i in range(65)], 30)] == [30, 30, 5]
    with pytest.raises(ValueError):
        list(chunked(["a"], 0))


def test_in_filter_refuses_more_than_thirty_values():
    in_("registration_id", [str(i) for i in range(30)])
    with pytest.raises(InvalidQueryError):
        in_("registration_id", [str(i) for i in range(31)])
    with pytest.raises(InvalidQueryError):
        FieldFilter("registration_id", "in", "R1")


def test_engine_rejects_chunk_size_above_store_limit():
    with pytest.raises(ValueError):
        WinnerReconciliationEngine(InMemoryStore(), chunk_size=31)
    with pytest.raises(ValueError):
        WinnerReconciliationEngine(InMemoryStore(), chunk_size=0)


@pytest.mark.asyncio
async def test_marks_matches_and_reports_unmatched():
    store = InMemoryStore()
    store.put_submission("a", competition_id=REEL, registration_id="R1")
    store.put_submission("b", competition_id=REEL, registration_id="R2")
    store.put_submission("c", competition_id=REEL, registration_id="R3")

    result = await WinnerReconciliationEngine(store).reconcile(REEL, ["R1", "R2", "R9"])

    assert result.success
    assert result.total_matches == 2
    assert result.total_in_file == 3
    assert result.unmatched_ids == ["R9"]
    assert "Marked 2 submission(s) as winners." in result.message
    assert "1 of 3" in result.message
    assert _winners(store) == {"a", "b"}
    assert len(store.commits) == 1


@pytest.mark.asyncio
async def test_only_the_chosen_competition_is_touched():
    store = InMemoryStore()
    store.put_submission("a", competition_id=REEL, registration_id="R1")
    store.put_submission("b", competition_id="my-first-day", registration_id="R1")

    result = await WinnerReconciliationEngine(store).reconcile(REEL, ["R1"])

    assert result.success
    assert _winners(store) == {"a"}


@pytest.mark.asyncio
@pytest.mark.parametrize("n", [1, 30, 31, 65, 90])
async def test_one_query_per_chunk(n):
    store = InMemoryStore()
    _seed_reels(store, n)

    result = await WinnerReconciliationEngine(store).reconcile(REEL, [f"R{i}" for i in range(n)])

    assert result.total_matches == n
    assert len(store.queries) == math.ceil(n / 30)
    for _, filters in store.queries:
        in_filters = [f for f in filters if f.op == "in"]
        assert len(in_filters) == 1 and len(in_filters[0].value) <= 30


@pytest.mark.asyncio
async def test_result_does_not_depend_on_chunk_boundaries():
    ids = [f"R{i}" for i in range(0, 40, 3)] + ["NOPE1", "NOPE2"]
    marked = []
    for size in (1, 2, 7, 30):
        store = InMemoryStore()
        _seed_reels(store, 40)
        result = await WinnerReconciliationEngine(store, chunk_size=size).reconcile(REEL, ids)
        marked.append((frozenset(_winners(store)), result.total_matches, tuple(result.unmatched_ids)))
    assert len(set(marked)) == 1


@pytest.mark.asyncio
async def test_reconcile_is_idempotent():
    store = InMemoryStore()
    _seed_reels(store, 5)
    engine = WinnerReconciliationEngine(store)

    first = await engine.reconcile(REEL, ["R1", "R3"])
    snapshot = {k: dict(v) for k, v in store.collections["submissions"].items()}
    second = await engine.reconcile(REEL, ["R1", "R3"])

    assert first.total_matches == second.total_matches == 2
    assert store.collections["submissions"] == snapshot


@pytest.mark.asyncio
async def test_rank_is_left_alone():
    store = InMemoryStore()
    store.put_submission("a", competition_id=REEL, registration_id="R1", rank=2)

    await WinnerReconciliationEngine(store).reconcile(REEL, ["R1"])

    assert store.doc("submissions", "a")["rank"] == 2
    assert store.doc("submissions", "a")["is_winner"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("ids", [[], ["", "   "]])
async def test_no_ids_means_no_queries(ids):
    store = InMemoryStore()
    result = await WinnerReconciliationEngine(store).reconcile(REEL, ids)
    assert not result.success
    assert result.error == "validation"
    assert result.message == "No registration IDs provided."
    assert store.queries == []


@pytest.mark.asyncio
async def test_missing_competition_is_rejected():
    store = InMemoryStore()
    result = await WinnerReconciliationEngine(store).reconcile("  ", ["R1"])
    assert result.error == "validation"
    assert store.queries == []


@pytest.mark.asyncio
async def test_no_matches_writes_nothing():
    store = InMemoryStore()
    _seed_reels(store, 3)
    result = await WinnerReconciliationEngine(store).reconcile(REEL, ["X1", "X2"])
    assert not result.success
    assert result.error == "no_match"
    assert result.unmatched_ids == ["X1", "X2"]
    assert store.commits == []


@pytest.mark.asyncio
async def test_permission_denied_is_reported_distinctly():
    store = InMemoryStore()
    _seed_reels(store, 3)
    store.commit_error = PermissionDeniedError("insufficient privilege")

    result = await WinnerReconciliationEngine(store).reconcile(REEL, ["R1"])

    assert not result.success
    assert result.error == "permission_denied"
    assert result.message == PERMISSION_DENIED_MESSAGE
    assert _winners(store) == set()


@pytest.mark.asyncio
async def test_failed_chunk_aborts_without_writing():
    store = InMemoryStore()
    _seed_reels(store, 40)
    store.query_error = StoreError("deadline exceeded")

    result = await WinnerReconciliationEngine(store).reconcile(REEL, [f"R{i}" for i in range(40)])

    assert result.error == "store_error"
    assert result.message != PERMISSION_DENIED_MESSAGE
    assert store.commits == []
    assert _winners(store) == set()


@pytest.mark.asyncio
async def test_single_winner_competition_keeps_one_entry_per_participant():
    store = InMemoryStore()
    store.put_submission("early", registration_id="12345678", submitted_at="2025-09-01T08:00:00Z")
    store.put_submission("late", registration_id="12345678", submitted_at="2025-09-02T08:00:00Z")
    store.put_submission("other", registration_id="87654321")

    result = await WinnerReconciliationEngine(store).reconcile("follow-win", ["12345678", "87654321"])

    assert result.total_matches == 2
    assert _winners(store) == {"early", "other"}


@pytest.mark.asyncio
async def test_single_winner_competition_prefers_existing_winner():
    store = InMemoryStore()
    store.put_submission("early", registration_id="12345678", submitted_at="2025-09-01T08:00:00Z")
    store.put_submission("late", registration_id="12345678", submitted_at="2025-09-02T08:00:00Z", is_winner=True)

    result = await WinnerReconciliationEngine(store).reconcile("follow-win", ["12345678"])

    assert result.total_matches == 1
    assert _winners(store) == {"late"}
