from typing import Optional

from pydantic import BaseModel


class ResumeTextRequest(BaseModel):
    resume_text: str
    candidate_name: str = ""


class UtteranceRequest(BaseModel):
    text: str
    speaker: str = "unknown"
    source: str = "caption"
    timestamp: Optional[float] = None


class ApiKeyRequest(BaseModel):
    key: str = ""
