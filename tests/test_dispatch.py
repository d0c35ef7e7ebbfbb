import threading
import time

from services.dispatch import ImmediateDispatcher, RequestDispatcher


def drain_until(dispatcher, expected, timeout=5.0):
    # done callbacks may still be queueing right after the futures resolve
    delivered = 0
    deadline = time.monotonic() + timeout
    while delivered < expected and time.monotonic() < deadline:
        delivered += dispatcher.drain()
        time.sleep(0.01)
    return delivered


def test_callbacks_run_on_draining_thread():
    dispatcher = RequestDispatcher(max_workers=2)
    seen = []
    workers = []

    def call():
        workers.append(threading.current_thread().name)
        return 7

    future = dispatcher.submit(call, lambda r: seen.append((r, threading.current_thread().name)), seen.append)
    future.result(timeout=5)
    assert seen == []
    dispatcher.shutdown()
    assert seen == [(7, threading.current_thread().name)]
    assert workers[0].startswith("kanban-io")


def test_failures_are_routed():
    dispatcher = RequestDispatcher(max_workers=1)
    failures = []

    def boom():
        raise RuntimeError("down")

    dispatcher.submit(boom, lambda r: None, failures.append)
    dispatcher.shutdown()
    assert [str(e) for e in failures] == ["down"]


def test_drain_counts_deliveries():
    dispatcher = RequestDispatcher(max_workers=1)
    for _ in range(3):
        dispatcher.submit(lambda: None, lambda r: None, lambda e: None)
    assert drain_until(dispatcher, 3) == 3
    assert dispatcher.drain() == 0
    dispatcher.shutdown()


def test_immediate_dispatcher():
    results, failures = [], []
    d = ImmediateDispatcher()
    d.submit(lambda: "ok", results.append, failures.append)
    d.submit(lambda: 1 / 0, results.append, failures.append)
    assert results == ["ok"]
    assert isinstance(failures[0], ZeroDivisionError)
    assert d.drain() == 0
