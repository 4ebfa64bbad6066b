# backend/core/state.py

from enum import Enum


class InterviewPhase(str, Enum):
    IDLE = "IDLE"
    SETUP = "SETUP"
    ACTIVE = "ACTIVE"
    GENERATING_REPORT = "GENERATING_REPORT"
    ENDED = "ENDED"


class Speaker(str, Enum):
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"
    UNKNOWN = "unknown"


class UtteranceSource(str, Enum):
    CAPTION = "caption"
    SPEECH_API = "speech_api"
