import queue
import threading

from fzfkit.util.eventbox import EventBox

EVT_READ_NEW = 0
EVT_READ_FIN = 1
EVT_SEARCH_NEW = 2
EVT_SEARCH_PROGRESS = 3
EVT_SEARCH_FIN = 4

TIMEOUT = 5


def test_event_box():
    box = EventBox()
    to_main: queue.Queue = queue.Queue()
    to_worker: queue.Queue = queue.Queue()

    def worker():
        box.set(EVT_READ_NEW, 10)
        to_main.put(True)
        to_worker.get(timeout=TIMEOUT)
        box.set(EVT_SEARCH_NEW, 10)
        box.set(EVT_SEARCH_NEW, 15)
        box.set(EVT_SEARCH_NEW, 20)
        box.set(EVT_SEARCH_PROGRESS, 30)
        to_main.put(True)
        to_worker.get(timeout=TIMEOUT)
        box.set(EVT_SEARCH_FIN, 40)
        to_main.put(True)
        to_worker.get(timeout=TIMEOUT)

    thread = threading.Thread(target=worker, daemon=True)
    thread.start()

    count = 0
    total = 0
    looping = True
    while looping:
        to_main.get(timeout=TIMEOUT)

        def consume(events):
            nonlocal total, looping
            for value in events.values():
                if isinstance(value, int):
                    total += value
                    looping = total < 100
            events.clear()

        box.wait(consume)
        to_worker.put(True)
        count += 1

    thread.join(TIMEOUT)
    assert count == 3
    assert total == 100
    assert box.peek(EVT_SEARCH_FIN) is False
    assert box.peek(EVT_SEARCH_NEW) is False


def test_peek():
    box = EventBox()
    assert box.peek(EVT_READ_NEW) is False
    box.set(EVT_READ_NEW, None)
    assert box.peek(EVT_READ_NEW) is True
    assert box.peek(EVT_READ_FIN) is False


def test_wait_for_returns_when_event_arrives():
    box = EventBox()
    done = threading.Event()

    def waiter():
        box.wait_for(EVT_SEARCH_FIN)
        done.set()

    thread = threading.Thread(target=waiter, daemon=True)
    thread.start()
    box.set(EVT_SEARCH_FIN, 1)
    assert done.wait(TIMEOUT)
    assert box.peek(EVT_SEARCH_FIN) is True
    assert box.peek(EVT_READ_NEW) is False


def test_unwatched_event_does_not_wake_but_is_recorded():
    box = EventBox()
    box.unwatch(EVT_READ_NEW)
    woke = threading.Event()
    seen = []

    def waiter():
        box.wait(lambda events: seen.extend(events))
        woke.set()

    thread = threading.Thread(target=waiter, daemon=True)
    thread.start()
    box.set(EVT_READ_NEW, 1)
    assert not woke.wait(0.2)
    assert box.peek(EVT_READ_NEW)
    box.watch(EVT_READ_NEW)
    box.set(EVT_READ_FIN, 2)
    assert woke.wait(TIMEOUT)
    assert sorted(seen) == [EVT_READ_NEW, EVT_READ_FIN]