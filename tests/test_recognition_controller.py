import asyncio

import pytest

from utility.languages import LANGUAGE_CODES
from utility.recognition_controller import (
    RecognitionController,
    RecognitionEngine,
    RecognitionStatus,
    UNSUPPORTED_MESSAGE,
)


class FakeEngine(RecognitionEngine):
    """Records the commands the controller issues."""

    def __init__(self):
        self.calls = []

    async def start(self, locale, continuous=True, interim_results=False):
        self.calls.append(("start", locale, continuous, interim_results))

    async def stop(self):
        self.calls.append(("stop",))

    @property
    def starts(self):
        return [call for call in self.calls if call[0] == "start"]


class Recorder:
    def __init__(self):
        self.transcripts = []
        self.statuses = []
        self.recording = []

    async def on_transcript(self, text):
        self.transcripts.append(text)

    async def on_status(self, message):
        self.statuses.append(message)

    async def on_recording(self, value):
        self.recording.append(value)


def make_controller(engine=None, language="Italian", recorder=None):
    selection = {"source": language}
    recorder = recorder or Recorder()
    controller = RecognitionController(
        engine=engine,
        source_language=lambda: selection["source"],
        on_transcript=recorder.on_transcript,
        on_status=recorder.on_status,
        on_recording=recorder.on_recording,
    )
    return controller, selection, recorder


def result_event(*transcripts, index=None):
    results = [[{"transcript": t, "confidence": 0.9}] for t in transcripts]
    return results, len(results) - 1 if index is None else index


@pytest.mark.asyncio
@pytest.mark.parametrize("language,locale", sorted(LANGUAGE_CODES.items()))
async def test_start_uses_locale_mapping(language, locale):
    engine = FakeEngine()
    controller, _, _ = make_controller(engine, language)

    await controller.start()

    assert engine.calls == [("start", locale, True, False)]
    assert controller.status is RecognitionStatus.LISTENING
    assert controller.session.restart_on_end is True


@pytest.mark.asyncio
async def test_start_defaults_to_en_us_for_unmapped_language():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine, "Klingon")

    await controller.start()

    assert engine.calls == [("start", "en-US", True, False)]


@pytest.mark.asyncio
async def test_start_is_noop_while_listening():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine)

    await controller.start()
    await controller.start()

    assert len(engine.starts) == 1


@pytest.mark.asyncio
async def test_engine_start_reports_recording():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)

    await controller.start()
    await controller.handle_start()

    assert recorder.recording == [True]


@pytest.mark.asyncio
async def test_result_forwards_most_recent_segment():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.handle_result(*result_event("ciao", "ciao mondo"))

    assert recorder.transcripts == ["ciao mondo"]
    assert controller.status is RecognitionStatus.LISTENING


@pytest.mark.asyncio
async def test_result_uses_result_index():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.handle_result(*result_event("first", "second", index=0))

    assert recorder.transcripts == ["first"]


@pytest.mark.asyncio
async def test_result_without_transcript_is_ignored():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.handle_result([[]], 0)
    await controller.handle_result([], 3)

    assert recorder.transcripts == []
    assert controller.is_listening


@pytest.mark.asyncio
async def test_engine_timeout_restarts_with_same_locale():
    engine = FakeEngine()
    controller, selection, _ = make_controller(engine, "Italian")
    await controller.start()

    selection["source"] = "French"
    await controller.handle_end()

    assert engine.starts == [("start", "it-IT", True, False), ("start", "it-IT", True, False)]
    assert controller.status is RecognitionStatus.LISTENING
    assert controller.session.restart_on_end is True


@pytest.mark.asyncio
async def test_stop_then_end_does_not_restart():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.stop()
    assert controller.status is RecognitionStatus.STOPPING
    assert controller.session.restart_on_end is False

    await controller.handle_end()

    assert engine.calls == [("start", "it-IT", True, False), ("stop",)]
    assert controller.status is RecognitionStatus.IDLE
    assert recorder.recording == [False]


@pytest.mark.asyncio
async def test_late_end_after_stop_does_not_resurrect():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine)
    await controller.start()
    await controller.stop()

    # A result still in flight and a long gap before the engine reports end
    await controller.handle_result(*result_event("late words"))
    await asyncio.sleep(0.05)
    await controller.handle_end()

    assert len(engine.starts) == 1
    assert controller.status is RecognitionStatus.IDLE


@pytest.mark.asyncio
async def test_result_while_stopping_is_dropped():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()
    await controller.stop()

    await controller.handle_result(*result_event("too late"))

    assert recorder.transcripts == []


@pytest.mark.asyncio
async def test_explicit_stop_replaces_session():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine)
    await controller.start()
    first = controller.session

    await controller.stop()
    await controller.handle_end()

    assert controller.session is not first
    assert controller.session.locale is None


@pytest.mark.asyncio
async def test_controller_can_restart_after_stop():
    engine = FakeEngine()
    controller, selection, _ = make_controller(engine)
    await controller.start()
    await controller.stop()
    await controller.handle_end()

    selection["source"] = "Japanese"
    await controller.start()

    assert engine.starts[-1] == ("start", "ja-JP", True, False)
    assert controller.is_listening


@pytest.mark.asyncio
async def test_stop_is_noop_when_idle():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine)

    await controller.stop()

    assert engine.calls == []
    assert controller.status is RecognitionStatus.IDLE


@pytest.mark.asyncio
async def test_error_resets_to_idle_without_retry():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.handle_error("network")
    await controller.handle_end()

    assert len(engine.starts) == 1
    assert controller.status is RecognitionStatus.IDLE
    assert controller.session.restart_on_end is False
    assert recorder.recording == [False]


@pytest.mark.asyncio
async def test_stop_then_error_then_end_does_not_restart():
    engine = FakeEngine()
    controller, _, _ = make_controller(engine)
    await controller.start()

    await controller.stop()
    await controller.handle_error("aborted")
    await controller.handle_end()

    assert len(engine.starts) == 1
    assert controller.status is RecognitionStatus.IDLE


@pytest.mark.asyncio
async def test_missing_capability_reported_once():
    controller, _, recorder = make_controller(engine=None)

    await controller.start()
    await controller.start()

    assert recorder.statuses == [UNSUPPORTED_MESSAGE]
    assert controller.available is False
    assert controller.status is RecognitionStatus.IDLE


@pytest.mark.asyncio
async def test_disable_makes_controller_unusable():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)

    await controller.disable()
    await controller.disable()
    await controller.start()

    assert engine.calls == []
    assert recorder.statuses == [UNSUPPORTED_MESSAGE]


@pytest.mark.asyncio
async def test_dispatch_routes_engine_events():
    engine = FakeEngine()
    controller, _, recorder = make_controller(engine)
    await controller.start()

    await controller.dispatch({"event": "start"})
    await controller.dispatch({
        "event": "result",
        "result_index": 0,
        "results": [[{"transcript": "buongiorno"}]],
    })
    await controller.dispatch({"event": "end"})

    assert recorder.recording == [True]
    assert recorder.transcripts == ["buongiorno"]
    assert len(engine.starts) == 2


@pytest.mark.asyncio
async def test_dispatch_rejects_unknown_event():
    controller, _, _ = make_controller(FakeEngine())

    with pytest.raises(ValueError):
        await controller.dispatch({"event": "soundstart"})


@pytest.mark.asyncio
@pytest.mark.parametrize("result_index", [None, "last", [1]])
async def test_dispatch_rejects_bad_result_index(result_index):
    controller, _, recorder = make_controller(FakeEngine())
    await controller.start()

    with pytest.raises(ValueError):
        await controller.dispatch({
            "event": "result",
            "result_index": result_index,
            "results": [[{"transcript": "ciao"}]],
        })

    assert recorder.transcripts == []
    assert controller.is_listening
