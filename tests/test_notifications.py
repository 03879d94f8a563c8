import threading

from synergy import notifications


def test_publish_without_handlers():
    assert notifications.publish(notifications.LEVEL_UP, {"level": 2}) == 0


def test_synchronous_delivery():
    seen = []
    notifications.subscribe(notifications.LEVEL_UP, seen.append)
    notifications.subscribe(notifications.LEVEL_UP, seen.append)  # duplicate ignored

    assert notifications.publish(notifications.LEVEL_UP, {"level": 3}, background=False) == 1
    assert seen == [{"level": 3}]


def test_background_delivery_does_not_block():
    release = threading.Event()
    done = threading.Event()

    def slow(payload):
        release.wait(timeout=5)
        done.set()

    notifications.subscribe(notifications.REWARD_GRANTED, slow)
    assert notifications.publish(notifications.REWARD_GRANTED, {}) == 1
    assert not done.is_set()

    release.set()
    assert done.wait(timeout=5)


def test_failing_handler_is_isolated():
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    notifications.subscribe(notifications.STREAK_EXTENDED, broken)
    notifications.subscribe(notifications.STREAK_EXTENDED, seen.append)

    notifications.publish(notifications.STREAK_EXTENDED, {"streak": 2}, background=False)
    assert seen == [{"streak": 2}]


def test_unsubscribe():
    seen = []
    notifications.subscribe(notifications.LEVEL_UP, seen.append)
    notifications.unsubscribe(notifications.LEVEL_UP, seen.append)
    notifications.unsubscribe(notifications.LEVEL_UP, seen.append)

    assert notifications.publish(notifications.LEVEL_UP, {}, background=False) == 0
    assert seen == []
