import threading

from engine.connection_registry import ConnectionRegistry


def test_ids_increase_from_zero(registry):
    assert [registry.accept() for _ in range(3)] == [0, 1, 2]
    assert registry.open_connections == 3
    assert registry.total_accepted == 3


def test_accept_then_close_returns_to_zero(registry):
    ids = [registry.accept() for _ in range(5)]
    for client_id in ids:
        registry.close(client_id)

    assert registry.open_connections == 0
    assert registry.total_accepted == 5


def test_ids_are_not_reused(registry):
    first = registry.accept()
    registry.close(first)

    assert registry.accept() == first + 1


def test_close_at_zero_is_ignored(registry):
    registry.close(7)
    assert registry.open_connections == 0


def test_snapshot(registry):
    registry.accept()
    client_id = registry.accept()

    info = registry.snapshot(client_id)

    assert info.client_id == 1
    assert info.open_connections == 2


def test_registries_are_independent():
    a, b = ConnectionRegistry(), ConnectionRegistry()
    a.accept()

    assert b.accept() == 0
    assert a.open_connections == 1


def test_concurrent_accept_hands_out_unique_ids(registry):
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            client_id = registry.accept()
            with lock:
                ids.append(client_id)
            registry.close(client_id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(ids) == list(range(800))
    assert registry.open_connections == 0
    assert registry.as_dict() == {"open_connections": 0, "total_accepted": 800}
