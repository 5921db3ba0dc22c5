from __future__ import annotations

import threading

from hostreg.storage import HostnameRegistry


def test_put_get_overwrite() -> None:
    reg = HostnameRegistry()
    assert reg.get("a") is None
    first = reg.put("a", "v1")
    second = reg.put("a", "v2")
    assert reg.get("a") == "v2"
    assert first != second
    assert reg.owner_of("a") == second
    assert len(reg) == 1


def test_remove_checks_owner() -> None:
    reg = HostnameRegistry()
    stale = reg.put("a", "v1")
    current = reg.put("a", "v2")
    assert not reg.remove("a", owner=stale)
    assert reg.get("a") == "v2"
    assert reg.remove("a", owner=current)
    assert "a" not in reg
    assert not reg.remove("a")


def test_snapshot_is_a_copy() -> None:
    reg = HostnameRegistry()
    reg.put("a", "1")
    snap = reg.snapshot()
    snap["b"] = "2"
    assert reg.snapshot() == {"a": "1"}


def test_concurrent_puts_all_land() -> None:
    reg = HostnameRegistry()

    def writer(n: int) -> None:
        for i in range(200):
            reg.put(f"host-{n}-{i}", str(i))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(reg) == 8 * 200
