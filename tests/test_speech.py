"""
Tests for narration control.
"""

import pytest
import json
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdf_dictation.utils.speech import SpeechEngine


class RecordingEngine(SpeechEngine):
    """Engine that records calls and reports start immediately."""

    def __init__(self):
        super().__init__()
        self.spoken = []
        self.calls = []

    def speak(self, request):
        self.calls.append("speak")
        self.spoken.append(request)
        self._started()

    def cancel(self):
        super().cancel()
        self.calls.append("cancel")

    def pause(self):
        super().pause()
        self.calls.append("pause")

    def resume(self):
        super().resume()
        self.calls.append("resume")

    def finish(self):
        self._ended()


@pytest.fixture
def sentences():
    from pdf_dictation.utils.sentences import Sentence
    return [
        Sentence("First one.", 1),
        Sentence("We have f(t) = 2.", 1),
        Sentence("Last one!", 2),
    ]


class TestSpeechRequest:
    """Tests for utterance validation."""

    def test_volume_bounds(self):
        from pdf_dictation.utils.speech import SpeechRequest

        assert SpeechRequest("hi", volume=0.0).volume == 0.0
        assert SpeechRequest("hi", volume=1.0).volume == 1.0
        with pytest.raises(ValueError):
            SpeechRequest("hi", volume=1.5)
        with pytest.raises(ValueError):
            SpeechRequest("hi", volume=-0.1)


class TestNarrator:
    """Tests for the sentence cursor and playback state."""

    def test_speak_at_normalizes(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine, voice="Alex", volume=0.5)

        request = narrator.speak_at(1)

        assert request.text == "We have f of t equals 2."
        assert request.voice == "Alex"
        assert request.volume == 0.5
        assert narrator.current == 1
        assert narrator.is_speaking
        assert engine.calls == ["cancel", "speak"]

    def test_math_mode_off(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        narrator = Narrator(sentences, RecordingEngine(), math_mode=False)

        assert narrator.speak_at(1).text == "We have f(t) = 2."

    def test_select_only(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine)

        assert narrator.speak_at(2, select_only=True) is None
        assert narrator.current == 2
        assert engine.spoken == []

    def test_out_of_range(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        with pytest.raises(IndexError):
            Narrator(sentences, RecordingEngine()).speak_at(3)

    def test_toggle_play_pause_resume(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine)

        narrator.toggle()
        assert narrator.is_speaking

        narrator.toggle()
        assert not narrator.is_speaking
        assert engine.paused

        narrator.toggle()
        assert narrator.is_speaking
        assert not engine.paused
        assert engine.calls == ["cancel", "speak", "pause", "resume"]

    def test_end_event_stops_speaking(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine)
        narrator.speak_at(0)

        engine.finish()

        assert not narrator.is_speaking

    def test_error_event_stops_speaking(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine)
        narrator.speak_at(0)

        engine._failed("synthesis-failed")

        assert not narrator.is_speaking

    def test_next_and_prev(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        narrator = Narrator(sentences, RecordingEngine())

        assert narrator.prev() is None
        assert narrator.next().text == "We have f of t equals 2."
        assert narrator.next().text == "Last one!"
        assert narrator.next() is None
        assert narrator.current == 2
        assert narrator.prev().text == "We have f of t equals 2."

    def test_progress_and_page(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        narrator = Narrator(sentences, RecordingEngine())

        assert narrator.progress_pct == 0.0
        assert narrator.current_page == 1
        narrator.speak_at(1, select_only=True)
        assert narrator.progress_pct == 50.0
        narrator.speak_at(2, select_only=True)
        assert narrator.progress_pct == 100.0
        assert narrator.current_page == 2

    def test_stop(self, sentences):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator(sentences, engine)
        narrator.speak_at(0)

        narrator.stop()

        assert not narrator.is_speaking
        assert engine.calls[-1] == "cancel"

    def test_empty_is_nothing_to_read(self):
        from pdf_dictation.utils.speech import Narrator

        engine = RecordingEngine()
        narrator = Narrator([], engine)

        assert narrator.toggle() is None
        assert narrator.speak_at(0) is None
        assert narrator.next() is None
        assert narrator.current_page is None
        assert narrator.progress_pct == 0.0
        assert engine.spoken == []


class TestBrowserSpeechEngine:
    """Tests for the Web Speech API bridge."""

    def test_speak_renders_script_once(self):
        from pdf_dictation.utils.speech import BrowserSpeechEngine, SpeechRequest

        engine = BrowserSpeechEngine()
        engine.speak(SpeechRequest("x squared", voice="Samantha", volume=0.8))

        script = engine.render_html()

        assert "SpeechSynthesisUtterance" in script
        assert json.dumps("x squared") in script
        assert '"Samantha"' in script
        assert engine.render_html() == ""

    def test_cancel_and_pause(self):
        from pdf_dictation.utils.speech import BrowserSpeechEngine

        engine = BrowserSpeechEngine()

        engine.pause()
        assert engine.paused
        assert '"pause"' in engine.render_html()

        engine.cancel()
        assert not engine.paused
        assert '"cancel"' in engine.render_html()

    def test_narrator_through_browser_engine(self):
        from pdf_dictation.utils.sentences import Sentence
        from pdf_dictation.utils.speech import BrowserSpeechEngine, Narrator

        engine = BrowserSpeechEngine()
        narrator = Narrator([Sentence("a < b", 1)], engine)

        narrator.toggle()

        script = engine.render_html()
        assert '"action": "toggle"' in script
        assert "a less than b" in script

    def test_play_after_utterance_finished_replays(self):
        from pdf_dictation.utils.sentences import Sentence
        from pdf_dictation.utils.speech import BrowserSpeechEngine, Narrator

        engine = BrowserSpeechEngine()
        narrator = Narrator([Sentence("First one.", 1), Sentence("Second one.", 1)], engine)

        # The page never reports the end of speech, so every press has to carry
        # the utterance and let the browser choose pause, resume or replay.
        commands = []
        for _ in range(5):
            request = narrator.toggle()
            assert request.text == "First one."
            commands.append((engine.pending["action"], engine.pending["text"]))
            script = engine.render_html()
            assert "synth.speaking" in script

        assert commands == [("toggle", "First one.")] * 5
        assert not narrator.is_speaking
        assert not engine.paused

    def test_voice_falls_back_to_language_prefix(self):
        from pdf_dictation.utils.speech import BrowserSpeechEngine, SpeechRequest

        engine = BrowserSpeechEngine(lang_prefix="en-")
        engine.speak(SpeechRequest("hello"))

        script = engine.render_html()

        assert '"lang": "en-"' in script
        assert "startsWith(cmd.lang)" in script

    def test_base_engine_is_abstract(self):
        from pdf_dictation.utils.speech import SpeechEngine, SpeechRequest

        with pytest.raises(NotImplementedError):
            SpeechEngine().speak(SpeechRequest("hi"))
