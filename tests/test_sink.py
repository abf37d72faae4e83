"""Tests for ResultSink and ReadWriteLock."""

from __future__ import annotations

import threading

from struct_diff.result import DifferenceKind, DifferenceRecord
from struct_diff.sink import ReadWriteLock, ResultSink


def _record(path: str) -> DifferenceRecord:
    return DifferenceRecord(
        path=path,
        kind=DifferenceKind.VALUE_MISMATCH,
        value1=1,
        value2=2,
        value_type=int,
    )


class TestResultSink:
    def test_snapshot_preserves_insertion_order(self) -> None:
        sink = ResultSink()
        sink.append(_record("root.a"))
        sink.append(_record("root.b"))
        assert [r.path for r in sink.snapshot()] == ["root.a", "root.b"]

    def test_snapshot_is_a_copy(self) -> None:
        sink = ResultSink()
        sink.append(_record("root"))
        snapshot = sink.snapshot()
        snapshot.append(_record("root.x"))
        assert len(sink) == 1

    def test_clear_locked_inside_exclusive(self) -> None:
        sink = ResultSink()
        sink.append(_record("root"))
        with sink.exclusive():
            sink.clear_locked()
        assert len(sink) == 0

    def test_concurrent_appends(self) -> None:
        sink = ResultSink()

        def write(n: int) -> None:
            for i in range(200):
                sink.append(_record(f"root[{n}][{i}]"))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(sink) == 1000
        assert len({r.path for r in sink.snapshot()}) == 1000


class TestReadWriteLock:
    def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Event()
        release = threading.Event()

        def reader() -> None:
            with lock.read():
                inside.set()
                release.wait(timeout=5)

        t = threading.Thread(target=reader)
        t.start()
        assert inside.wait(timeout=5)
        with lock.read():
            pass  # a second reader gets in while the first one holds the lock
        release.set()
        t.join()

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []
        writing = threading.Event()

        def reader() -> None:
            writing.wait(timeout=5)
            with lock.read():
                order.append("read")

        t = threading.Thread(target=reader)
        with lock.write():
            t.start()
            writing.set()
            t.join(timeout=0.1)
            order.append("write")
        t.join()
        assert order == ["write", "read"]
