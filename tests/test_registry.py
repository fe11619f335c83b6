from __future__ import annotations

from realtime.registry import ConnectionRegistry


def test_add_is_idempotent_for_the_same_connection(make_connection):
    registry = ConnectionRegistry()
    conn = make_connection()

    registry.add(conn)
    registry.add(conn)

    assert registry.count() == 1
    assert conn in registry


def test_remove_absent_connection_is_a_noop(make_connection):
    registry = ConnectionRegistry()
    kept = make_connection("kept")
    registry.add(kept)

    registry.remove(make_connection("stranger"))
    registry.remove(kept)
    registry.remove(kept)

    assert registry.count() == 0


def test_for_each_tolerates_removal_during_iteration(make_connection):
    registry = ConnectionRegistry()
    conns = [make_connection(f"c{i}") for i in range(3)]
    for conn in conns:
        registry.add(conn)

    visited = []

    def visit(conn):
        visited.append(conn)
        registry.remove(conn)

    registry.for_each(visit)

    assert sorted(c.remote_address for c in visited) == sorted(c.remote_address for c in conns)
    assert len(registry) == 0
