import threading

import pytest

from token_authority.application.profile_cache import ProfileCache
from token_authority.application.session_guard import SessionGuard
from token_authority.domain.entities import ProfileRecord, ProfileSnapshot
from token_authority.domain.exceptions import DuplicateSessionError

from conftest import FakeProfileRepository


@pytest.fixture
def guard(store):
    return SessionGuard(store=store)


@pytest.fixture
def cache(store):
    return ProfileCache(store=store)


# --- SessionGuard -------------------------------------------------------------


def test_acquire_first_login_wins(guard, store):
    guard.acquire_session("E001", "token-a", 900)
    assert store.get("session:E001") == "token-a"
    assert guard.active_token("E001") == "token-a"

    with pytest.raises(DuplicateSessionError) as excinfo:
        guard.acquire_session("E001", "token-b", 900)
    assert excinfo.value.principal == "E001"
    assert store.get("session:E001") == "token-a"


def test_principals_are_independent(guard):
    guard.acquire_session("E001", "token-a", 900)
    guard.acquire_session("E002", "token-b", 900)
    assert guard.active_token("E001") == "token-a"
    assert guard.active_token("E002") == "token-b"


def test_session_lapses_naturally(guard, clock):
    guard.acquire_session("E001", "token-a", 900)
    clock.advance(900)
    assert guard.active_token("E001") is None
    guard.acquire_session("E001", "token-b", 900)
    assert guard.active_token("E001") == "token-b"


def test_release_deletes_session_and_revokes(guard, store):
    guard.acquire_session("E001", "token-a", 900)
    guard.release_session("E001", "token-a", 600)

    assert store.get("session:E001") is None
    assert store.get("token-a") == "revoked"
    assert store.ttl("token-a") == pytest.approx(600)
    assert guard.is_revoked("token-a") is True


def test_release_is_idempotent(guard, store, clock):
    guard.acquire_session("E001", "token-a", 900)
    guard.release_session("E001", "token-a", 600)
    clock.advance(100)
    guard.release_session("E001", "token-a", 500)

    assert store.get("session:E001") is None
    assert store.keys() == ["token-a"]
    assert store.ttl("token-a") == pytest.approx(500)


def test_release_skips_marker_for_spent_token(guard, store):
    guard.acquire_session("E001", "token-a", 900)
    guard.release_session("E001", "token-a", 0)
    assert store.get("session:E001") is None
    assert guard.is_revoked("token-a") is False


def test_rebind_points_session_at_new_token(guard, store):
    guard.acquire_session("E001", "token-a", 900)
    assert guard.rebind_session("E001", "token-a", "token-b", 900) is True
    assert guard.active_token("E001") == "token-b"
    assert guard.session_ttl("E001") == pytest.approx(900)


def test_rebind_never_recreates_a_released_session(guard, store):
    guard.acquire_session("E001", "token-a", 900)
    guard.release_session("E001", "token-a", 900)

    assert guard.rebind_session("E001", "token-a", "token-b", 900) is False
    assert guard.active_token("E001") is None


def test_rebind_leaves_another_login_alone(guard):
    guard.acquire_session("E001", "token-b", 900)
    assert guard.rebind_session("E001", "token-a", "token-c", 900) is False
    assert guard.active_token("E001") == "token-b"


def test_at_most_one_session_under_concurrent_acquire(guard, store):
    attempts = 24
    barrier = threading.Barrier(attempts)
    outcomes = []
    lock = threading.Lock()

    def login(i: int) -> None:
        barrier.wait()
        try:
            guard.acquire_session("E001", f"token-{i}", 900)
            outcome = ("won", i)
        except DuplicateSessionError:
            outcome = ("rejected", i)
        with lock:
            outcomes.append(outcome)

    workers = [threading.Thread(target=login, args=(i,)) for i in range(attempts)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()

    winners = [i for result, i in outcomes if result == "won"]
    assert len(winners) == 1
    assert len(outcomes) == attempts
    assert store.keys() == ["session:E001"]
    assert store.get("session:E001") == f"token-{winners[0]}"


# --- ProfileCache -------------------------------------------------------------


def test_profile_put_and_get(cache, store):
    snapshot = ProfileSnapshot(
        id=1, employee_id="E001", name="Kim", role="ADMIN", scope="all", shift="night"
    )
    cache.put("E001", snapshot, 3600)

    assert cache.get("E001") == snapshot
    assert '"employee_id":"E001"' in store.get("user:E001")
    assert store.ttl("user:E001") == pytest.approx(3600)


def test_profile_extend_ttl(cache, store, clock):
    cache.put("E001", ProfileSnapshot.unknown("E001"), 3600)
    clock.advance(3000)
    assert cache.extend_ttl("E001", 3600) is True
    assert store.ttl("user:E001") == pytest.approx(3600)
    assert cache.extend_ttl("E999", 3600) is False


def test_profile_entry_expires(cache, clock):
    cache.put("E001", ProfileSnapshot.unknown("E001"), 60)
    clock.advance(60)
    assert cache.get("E001") is None


def test_profile_touch_rewarms_from_repository(cache, store):
    record = ProfileRecord(id=3, employee_id="E003", name="Park", role="USER")
    repository = FakeProfileRepository({"E003": record})

    assert cache.touch("E003", 3600) is False
    assert cache.touch("E003", 3600, repository) is True
    assert cache.get("E003").name == "Park"
    assert store.ttl("user:E003") == pytest.approx(3600)

    assert cache.touch("E003", 3600, repository) is True
    assert repository.lookups == 1
    assert cache.touch("E404", 3600, repository) is False


def test_corrupt_profile_entry_is_a_miss(cache, store):
    store.set("user:E001", "{not json", 60)
    assert cache.get("E001") is None
    store.set("user:E001", "[1, 2]", 60)
    assert cache.get("E001") is None


def test_resolve_falls_back_to_repository_then_unknown(cache):
    record = ProfileRecord(id=3, employee_id="E003", name="Park", role="USER")
    repository = FakeProfileRepository({"E003": record})

    resolved = cache.resolve("E003", repository)
    assert resolved.name == "Park"
    assert repository.lookups == 1

    cache.put("E003", ProfileSnapshot.from_record(record), 60)
    assert cache.resolve("E003", repository).name == "Park"
    assert repository.lookups == 1

    unknown = cache.resolve("E404", repository)
    assert unknown.name == "Unknown"
    assert unknown.role == "Unknown"
    assert cache.resolve("E405").employee_id == "E405"
