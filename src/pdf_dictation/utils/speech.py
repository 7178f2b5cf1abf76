"""
Narration control for the dictation reader.

Provides:
- SpeechRequest: text plus voice and volume for the speech engine
- SpeechEngine: interface of the external synthesizer (speak/cancel/pause/resume
  plus start/end/error events)
- Narrator: sentence cursor with play/pause, next/previous and math mode
- BrowserSpeechEngine: Web Speech API snippet for the Streamlit app
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .sentences import Sentence
from .speech_math import normalize_for_speech

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechRequest:
    """One utterance for the speech engine."""
    text: str
    voice: Optional[str] = None
    volume: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError(f"volume must be within [0, 1], got {self.volume}")


# ============================================================================
# Speech Engine Interface
# ============================================================================

class SpeechEngine:
    """
    Base class for speech synthesizers.

    Subclasses render speech and report progress through ``on_start``,
    ``on_end`` and ``on_error``; the narrator never blocks on them. Engines
    that cannot observe the end of an utterance set ``reports_end`` to False
    and implement ``toggle`` so the synthesizer decides between pausing,
    resuming and replaying.
    """

    reports_end = True

    def __init__(self):
        self.on_start: Optional[Callable[[], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None
        self.paused = False

    def speak(self, request: SpeechRequest) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle(self, request: SpeechRequest) -> None:
        raise NotImplementedError

    # Event helpers for subclasses
    def _started(self):
        if self.on_start:
            self.on_start()

    def _ended(self):
        if self.on_end:
            self.on_end()

    def _failed(self, message: str):
        logger.warning(f"Speech engine error: {message}")
        if self.on_error:
            self.on_error(message)


class BrowserSpeechEngine(SpeechEngine):
    """
    Speak through the browser's Web Speech API.

    ``speak`` only records the request; ``render_html`` turns the pending
    command into a script for ``streamlit.components.v1.html``. The page
    never reports utterance events back, so play/pause is resolved in the
    browser from ``speechSynthesis.speaking`` and ``paused``.
    """

    reports_end = False

    def __init__(self, lang_prefix: str = "en-"):
        super().__init__()
        self.lang_prefix = lang_prefix
        self.pending: Optional[dict] = None

    def _utterance_command(self, action: str, request: SpeechRequest) -> dict:
        return {
            "action": action,
            "text": request.text,
            "voice": request.voice or "",
            "lang": self.lang_prefix,
            "volume": request.volume
        }

    def speak(self, request: SpeechRequest) -> None:
        self.paused = False
        self.pending = self._utterance_command("speak", request)

    def toggle(self, request: SpeechRequest) -> None:
        self.pending = self._utterance_command("toggle", request)

    def cancel(self) -> None:
        super().cancel()
        self.pending = {"action": "cancel"}
        self._ended()

    def pause(self) -> None:
        super().pause()
        self.pending = {"action": "pause"}

    def resume(self) -> None:
        super().resume()
        self.pending = {"action": "resume"}

    def render_html(self) -> str:
        """Script executing the pending command, or an empty string."""
        if not self.pending:
            return ""
        command = json.dumps(self.pending)
        self.pending = None
        return f"""
<script>
(function() {{
  const cmd = {command};
  const synth = window.parent.speechSynthesis || window.speechSynthesis;
  if (cmd.action === "cancel") {{ synth.cancel(); return; }}
  if (cmd.action === "pause") {{ synth.pause(); return; }}
  if (cmd.action === "resume") {{ synth.resume(); return; }}
  if (cmd.action === "toggle") {{
    if (synth.paused) {{ synth.resume(); return; }}
    if (synth.speaking) {{ synth.pause(); return; }}
  }}
  synth.cancel();
  const u = new SpeechSynthesisUtterance(cmd.text);
  const voices = synth.getVoices();
  const v = voices.find((vv) => vv.name === cmd.voice)
    || voices.find((vv) => cmd.lang && vv.lang.startsWith(cmd.lang));
  if (v) u.voice = v;
  u.volume = cmd.volume;
  synth.speak(u);
}})();
</script>
"""


# ============================================================================
# Narrator
# ============================================================================

class Narrator:
    """
    Reads a sentence sequence aloud through a speech engine.

    The sentence list is never reordered; indices match the extraction
    result. An empty list means there is nothing to read.
    """

    def __init__(
        self,
        sentences: Sequence[Sentence],
        engine: SpeechEngine,
        math_mode: bool = True,
        voice: Optional[str] = None,
        volume: float = 1.0
    ):
        self.sentences = list(sentences)
        self.engine = engine
        self.math_mode = math_mode
        self.voice = voice
        self.volume = volume
        self.current = 0
        self.is_speaking = False

        engine.on_start = self._handle_start
        engine.on_end = self._handle_stop
        engine.on_error = lambda message: self._handle_stop()

    def _handle_start(self):
        self.is_speaking = True

    def _handle_stop(self):
        self.is_speaking = False

    @property
    def progress_pct(self) -> float:
        if len(self.sentences) < 2:
            return 0.0
        return self.current / (len(self.sentences) - 1) * 100

    @property
    def current_page(self) -> Optional[int]:
        if not self.sentences:
            return None
        return self.sentences[self.current].page

    def utterance(self, index: int) -> SpeechRequest:
        """Build the speech request for one sentence."""
        raw = self.sentences[index].text
        text = normalize_for_speech(raw, math_mode=self.math_mode)
        return SpeechRequest(text=text, voice=self.voice, volume=self.volume)

    def speak_at(self, index: int, select_only: bool = False) -> Optional[SpeechRequest]:
        """
        Move the cursor to ``index`` and start speaking from there.

        Args:
            index: Sentence index
            select_only: Only move the cursor, do not speak

        Returns:
            The request handed to the engine, or None
        """
        if not self.sentences:
            return None
        if not 0 <= index < len(self.sentences):
            raise IndexError(f"sentence index out of range: {index}")

        self.current = index
        if select_only:
            return None

        self.engine.cancel()
        request = self.utterance(index)
        self.engine.speak(request)
        return request

    def toggle(self) -> Optional[SpeechRequest]:
        """Play, pause or resume depending on the engine state."""
        if not self.sentences:
            return None
        if not self.engine.reports_end:
            request = self.utterance(self.current)
            self.engine.toggle(request)
            return request
        if self.is_speaking:
            self.engine.pause()
            self.is_speaking = False
            return None
        if self.engine.paused:
            self.engine.resume()
            self.is_speaking = True
            return None
        return self.speak_at(self.current)

    def stop(self) -> None:
        self.engine.cancel()
        self.is_speaking = False

    def next(self) -> Optional[SpeechRequest]:
        if self.current < len(self.sentences) - 1:
            return self.speak_at(self.current + 1)
        return None

    def prev(self) -> Optional[SpeechRequest]:
        if self.current > 0:
            return self.speak_at(self.current - 1)
        return None
