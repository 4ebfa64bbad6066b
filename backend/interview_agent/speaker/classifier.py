from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from core.state import Speaker


class SpeakerClassifier(Protocol):
    def classify(self, text: str, context: Mapping[str, Any]) -> Speaker:
        ...


class DisplayNameSpeakerClassifier:
    """
    Best-effort label from the capture hint.

    The hint is either an explicit label or the display name shown next to
    the caption. "You" and the configured interviewer name mean the
    interviewer; any other name is the candidate.
    """

    def __init__(self, interviewer_name: Optional[str] = None):
        self.interviewer_name = str(interviewer_name or "").strip().lower()

    def classify(self, text: str, context: Mapping[str, Any]) -> Speaker:
        hint = str((context or {}).get("speaker_hint") or "").strip()
        lowered = hint.lower()

        if not lowered:
            return Speaker.UNKNOWN
        if lowered in {item.value for item in Speaker}:
            return Speaker(lowered)
        if lowered == "you":
            return Speaker.INTERVIEWER
        if self.interviewer_name and self.interviewer_name in lowered:
            return Speaker.INTERVIEWER
        return Speaker.CANDIDATE
