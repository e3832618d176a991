from __future__ import annotations

from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from .models import FeedbackRequest
from .normalize import norm_text

class SpeechRecognizer(Protocol):
    continuous: bool
    interim_results: bool
    lang: str
    max_alternatives: int

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def abort(self) -> None: ...

@dataclass(frozen=True)
class SpeechAlternative:
    transcript: str
    confidence: float

@dataclass(frozen=True)
class SpeechResult:
    is_final: bool
    alternatives: tuple[SpeechAlternative, ...] = ()

    def best(self) -> Optional[SpeechAlternative]:
        if not self.alternatives:
            return None
        return max(self.alternatives, key=lambda alt: alt.confidence)

@dataclass(frozen=True)
class SpeechRecognitionEvent:
    result_index: int = 0
    results: Sequence[SpeechResult] = field(default_factory=tuple)

def final_transcript(event: SpeechRecognitionEvent, *, min_confidence: float = 0.0) -> str:
    """Join the best alternative of every final result from ``result_index`` on.

    Interim results and alternatives below ``min_confidence`` are skipped.
    """
    parts: list[str] = []
    for result in event.results[event.result_index:]:
        if not result.is_final:
            continue
        best = result.best()
        if best is None or best.confidence < min_confidence:
            continue
        text = norm_text(best.transcript)
        if text:
            parts.append(text)
    return " ".join(parts)

def feedback_request_from_speech(
    event: SpeechRecognitionEvent,
    *,
    context: str | None = None,
    native_language: str | None = None,
    min_confidence: float = 0.0,
) -> FeedbackRequest | None:
    text = final_transcript(event, min_confidence=min_confidence)
    if not text:
        return None
    return FeedbackRequest(text=text, context=context, native_language=native_language)

def start_listening(recognizer: SpeechRecognizer, *, lang: str = "en-US", max_alternatives: int = 3) -> None:
    recognizer.continuous = False
    recognizer.interim_results = True
    recognizer.lang = lang
    recognizer.max_alternatives = max_alternatives
    recognizer.start()

async def transcribe(
    recognizer: SpeechRecognizer,
    events: AsyncIterable[SpeechRecognitionEvent],
    *,
    lang: str = "en-US",
    min_confidence: float = 0.0,
) -> str:
    """Listen until the first non-empty final transcript arrives.

    The recognizer is stopped once a transcript is taken (or the events run
    out) and aborted if the caller fails or is cancelled meanwhile.
    """
    start_listening(recognizer, lang=lang)
    try:
        async for event in events:
            text = final_transcript(event, min_confidence=min_confidence)
            if text:
                recognizer.stop()
                return text
    except BaseException:
        recognizer.abort()
        raise
    recognizer.stop()
    return ""
