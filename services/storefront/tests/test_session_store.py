import fakeredis
import pytest
import redis

from app.domain.checkout import CheckoutStep, OpenCheckout, transition
from app.domain.errors import SessionNotFoundError
from app.infrastructure.session_store import KEY_PREFIX, SessionStore, StorefrontSession
from conftest import make_product


def test_created_session_can_be_fetched(store):
    session = store.create()
    assert store.get(session.id) is session
    assert session.cart.is_empty()
    assert session.draft.step == CheckoutStep.IDLE


def test_unknown_session_raises(store):
    with pytest.raises(SessionNotFoundError):
        store.get("missing")


def test_deleted_session_is_gone(store):
    session = store.create()
    store.delete(session.id)
    with pytest.raises(SessionNotFoundError):
        store.get(session.id)
    assert len(store) == 0


def test_sessions_are_isolated(store):
    first, second = store.create(), store.create()
    first.cart.add(make_product(1))
    store.save(first)
    assert store.get(second.id).cart.is_empty()


def test_json_form_keeps_cart_and_draft():
    session = StorefrontSession(id="abc")
    session.cart.add(make_product(1, price="29.99", stock=5), 2)
    session.draft = transition(session.draft, OpenCheckout())
    restored = StorefrontSession.from_json(session.to_json())
    assert restored.id == "abc"
    assert restored.cart.get(1).quantity == 2
    assert restored.draft == session.draft
    assert restored.created_at == session.created_at


def test_unreachable_redis_falls_back_to_memory():
    store = SessionStore(ttl_seconds=60, max_entries=10, redis_url="redis://127.0.0.1:1/0")
    assert store.redis_client is None
    session = store.create()
    assert store.get(session.id) is session


@pytest.fixture
def shared_redis():
    return fakeredis.FakeRedis(decode_responses=True)


def redis_store(client):
    return SessionStore(ttl_seconds=60, max_entries=10, redis_client=client)


def test_saved_session_is_written_with_ttl(shared_redis):
    store = redis_store(shared_redis)
    session = store.create()
    key = KEY_PREFIX + session.id
    assert shared_redis.exists(key)
    assert 0 < shared_redis.ttl(key) <= 60


def test_fresh_store_reads_session_back_from_redis(shared_redis):
    session = redis_store(shared_redis).create()
    session.cart.add(make_product(1, price="29.99", stock=5), 2)
    session.draft = transition(session.draft, OpenCheckout())
    redis_store(shared_redis).save(session)

    restored = redis_store(shared_redis).get(session.id)
    assert restored.cart.get(1).quantity == 2
    assert restored.draft.step == CheckoutStep.INFO


def test_workers_sharing_redis_see_each_others_writes(shared_redis):
    worker_a, worker_b = redis_store(shared_redis), redis_store(shared_redis)
    session = worker_a.create()
    assert worker_b.get(session.id).cart.is_empty()

    on_a = worker_a.get(session.id)
    on_a.cart.add(make_product(1), 1)
    worker_a.save(on_a)

    on_b = worker_b.get(session.id)
    assert on_b.cart.total_items() == 1
    on_b.cart.add(make_product(2), 1)
    worker_b.save(on_b)
    assert worker_a.get(session.id).cart.total_items() == 2


def test_delete_on_one_worker_is_seen_by_another(shared_redis):
    worker_a, worker_b = redis_store(shared_redis), redis_store(shared_redis)
    session = worker_a.create()
    worker_b.get(session.id)
    worker_a.delete(session.id)
    with pytest.raises(SessionNotFoundError):
        worker_b.get(session.id)


def test_redis_read_error_falls_back_to_local_copy(shared_redis, monkeypatch):
    store = redis_store(shared_redis)
    session = store.create()

    def broken(*args, **kwargs):
        raise redis.ConnectionError("redis went away")

    monkeypatch.setattr(shared_redis, "get", broken)
    assert store.get(session.id).id == session.id
    with pytest.raises(SessionNotFoundError):
        store.get("missing")
