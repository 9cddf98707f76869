import threading
import time

from sudoku_server.utils.locks import KeyedLock


def test_same_key_is_exclusive():
    locks = KeyedLock()
    inside = []
    overlaps = []

    def worker():
        with locks.hold('room_1'):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []
    assert locks.active_keys() == 0


def test_different_keys_do_not_block_each_other():
    locks = KeyedLock()
    entered = threading.Event()

    def other_room():
        with locks.hold('room_2'):
            entered.set()

    with locks.hold('room_1'):
        thread = threading.Thread(target=other_room)
        thread.start()
        assert entered.wait(timeout=1)
        thread.join()


def test_reentrant_for_the_holding_thread():
    locks = KeyedLock()
    with locks.hold('room_1'):
        with locks.hold('room_1'):
            assert locks.active_keys() == 1
    assert locks.active_keys() == 0
