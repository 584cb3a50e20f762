from __future__ import annotations

import threading
import time

from monero_blocks.infra import ReadWriteLock, Throttle


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_throttle_first_call_is_free() -> None:
    clock = FakeClock()
    throttle = Throttle(5.0, clock=clock, sleep=clock.sleep)
    assert throttle.wait() == 0.0
    assert clock.sleeps == []


def test_throttle_spaces_consecutive_calls() -> None:
    clock = FakeClock()
    throttle = Throttle(5.0, clock=clock, sleep=clock.sleep)
    throttle.wait()
    clock.now += 2.0
    assert throttle.wait() == 3.0
    clock.now += 10.0
    assert throttle.wait() == 0.0
    assert clock.sleeps == [3.0]


def test_throttle_negative_interval_is_disabled() -> None:
    clock = FakeClock()
    throttle = Throttle(-1, clock=clock, sleep=clock.sleep)
    throttle.wait()
    assert throttle.wait() == 0.0


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2)
    errors: list[BaseException] = []

    def reader() -> None:
        try:
            with lock.read():
                inside.wait()
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)
    assert errors == []


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    lock.acquire_write()

    def reader() -> None:
        with lock.read():
            events.append("read")

    thread = threading.Thread(target=reader)
    thread.start()
    time.sleep(0.05)
    events.append("write-done")
    lock.release_write()
    thread.join(timeout=5)
    assert events == ["write-done", "read"]


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    lock.acquire_read()

    def writer() -> None:
        with lock.write():
            events.append("write")

    def late_reader() -> None:
        with lock.read():
            events.append("read")

    writer_thread = threading.Thread(target=writer)
    writer_thread.start()
    time.sleep(0.05)
    reader_thread = threading.Thread(target=late_reader)
    reader_thread.start()
    time.sleep(0.05)
    assert events == []
    lock.release_read()
    writer_thread.join(timeout=5)
    reader_thread.join(timeout=5)
    assert events == ["write", "read"]
