import pytest

from fieldgallery.services.query_cache import QueryCache, project_files_key


class Counter:
    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1
        return [self.n]


def test_get_fetches_once_until_invalidated():
    c, fetch = QueryCache(), Counter()
    key = project_files_key(1)
    c.register(key, fetch)
    assert c.is_stale(key)
    assert c.get(key) == [1]
    assert c.get(key) == [1]
    assert fetch.n == 1

    c.invalidate(key)
    assert c.is_stale(key)
    assert c.peek(key) == [1]   # nobody subscribed: refetch waits for the next get
    assert c.get(key) == [2]


def test_invalidate_refetches_subscribed_keys_immediately():
    c = QueryCache()
    key = project_files_key(1)
    c.register(key, Counter())
    seen = []
    unsubscribe = c.subscribe(key, lambda k, data: seen.append((k, data)))
    c.get(key)
    c.invalidate(key)
    assert seen == [(key, [1]), (key, [2])]
    assert not c.is_stale(key)

    unsubscribe()
    c.invalidate(key)
    assert len(seen) == 2
    assert c.fetch_count(key) == 2


def test_invalidate_matches_by_prefix():
    c = QueryCache()
    for pid in (1, 2):
        c.register(project_files_key(pid), Counter())
    c.register(("/api/users",), Counter())
    hit = c.invalidate(("/api/projects",))
    assert sorted(hit) == [project_files_key(1), project_files_key(2)]
    assert c.invalidate(project_files_key(2)) == [project_files_key(2)]
    assert c.invalidate(project_files_key(99)) == []


def test_fetch_error_keeps_previous_data():
    c = QueryCache()
    key = ("k",)
    calls = []

    def fetch():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("down")
        return "first"

    c.register(key, fetch)
    c.get(key)
    c.invalidate(key)
    with pytest.raises(RuntimeError):
        c.get(key)
    assert c.peek(key) == "first"
    assert c.is_stale(key)


def test_unregistered_key():
    c = QueryCache()
    assert c.peek(("nope",)) is None
    with pytest.raises(KeyError):
        c.get(("nope",))
