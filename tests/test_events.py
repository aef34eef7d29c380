"""Tests for the event channel and listeners."""

import logging
import threading

from hmmlab.events import (
    CallbackListener,
    DoEvent,
    DoType,
    EventChannel,
    HMMListener,
    InfoEvent,
    LoggingListener,
)


class RecordingListener(HMMListener):
    def __init__(self):
        self.infos = []
        self.dos = []

    def received_info(self, evt):
        self.infos.append(evt)

    def received_do(self, evt):
        self.dos.append(evt)


def _do_event(kind=DoType.DOING, iteration=1):
    return DoEvent("src", kind, "hmm_em", "summary", iteration, 10)


def test_add_listener_ignores_duplicates():
    channel = EventChannel()
    listener = RecordingListener()
    channel.add_listener(listener)
    channel.add_listener(listener)
    assert channel.listeners() == [listener]
    assert channel.has_listeners()


def test_remove_missing_listener_is_ignored():
    channel = EventChannel()
    channel.remove_listener(RecordingListener())
    assert not channel.has_listeners()


def test_info_and_do_dispatch():
    channel = EventChannel()
    listener = RecordingListener()
    channel.add_listener(listener)

    channel.info("src", "hello")
    channel.fire_do(_do_event())

    assert listener.infos == [InfoEvent("src", "hello")]
    assert listener.dos[0].type is DoType.DOING
    assert listener.dos[0].iteration == 1


def test_failing_listener_does_not_stop_dispatch(caplog):
    """An exception in one listener is logged and the next listener still runs."""
    channel = EventChannel()

    def boom(evt):
        raise RuntimeError("listener failure")

    channel.add_listener(CallbackListener(on_info=boom, on_do=boom))
    survivor = RecordingListener()
    channel.add_listener(survivor)

    events_logger = logging.getLogger("hmmlab.events")
    events_logger.addHandler(caplog.handler)
    try:
        channel.info("src", "still delivered")
        channel.fire_do(_do_event())
    finally:
        events_logger.removeHandler(caplog.handler)

    assert [evt.info for evt in survivor.infos] == ["still delivered"]
    assert len(survivor.dos) == 1
    assert "listener failure" in caplog.text


def test_listener_may_remove_itself_during_dispatch():
    channel = EventChannel()
    seen = []

    class OneShot(HMMListener):
        def received_info(self, evt):
            seen.append(evt.info)
            channel.remove_listener(self)

    channel.add_listener(OneShot())
    channel.info("src", "first")
    channel.info("src", "second")
    assert seen == ["first"]


def test_clear_detaches_everything():
    channel = EventChannel()
    channel.add_listener(RecordingListener())
    channel.add_listener(RecordingListener())
    channel.clear()
    assert channel.listeners() == []


def test_callback_listener_with_missing_hooks():
    received = []
    listener = CallbackListener(on_do=received.append)
    listener.received_info(InfoEvent("src", "ignored"))
    listener.received_do(_do_event(DoType.DONE, 3))
    assert received[0].type is DoType.DONE


def test_logging_listener_levels(caplog):
    logger = logging.getLogger("test.hmm.events")
    listener = LoggingListener(logger)
    with caplog.at_level(logging.DEBUG, logger="test.hmm.events"):
        listener.received_info(InfoEvent("src", "alpha0(0)=0.198"))
        listener.received_do(_do_event(DoType.DOING, 2))
        listener.received_do(_do_event(DoType.DONE, 5))

    levels = [(r.levelno, r.getMessage()) for r in caplog.records]
    assert levels[0] == (logging.DEBUG, "alpha0(0)=0.198")
    assert levels[1] == (logging.INFO, "hmm_em iteration 2/10")
    assert levels[2] == (logging.INFO, "hmm_em done after 5 iterations")


def test_concurrent_registration():
    channel = EventChannel()
    listeners = [RecordingListener() for _ in range(50)]
    threads = [threading.Thread(target=channel.add_listener, args=(lst,)) for lst in listeners]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(channel.listeners()) == 50
