import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


LLM_PROVIDER = str(os.getenv("LLM_PROVIDER") or "anthropic").strip().lower()
ANTHROPIC_API_KEY = str(os.getenv("ANTHROPIC_API_KEY") or "").strip()
OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
MODEL_NAME = str(os.getenv("MODEL_NAME") or "").strip()
LLM_TIMEOUT_SEC = max(0.0, float(os.getenv("LLM_TIMEOUT_SEC", "0") or 0))  # 0 disables the timeout
LLM_MAX_RETRIES = max(0, int(os.getenv("LLM_MAX_RETRIES", "0") or 0))

USE_FILE_SESSION_STORE = _env_flag("USE_FILE_SESSION_STORE", "true")
SESSION_STORE_PATH = Path(
    os.getenv("SESSION_STORE_PATH") or (_BACKEND_ROOT / "data" / "interview_session.json")
)

INTERVIEW_EVENT_BUS_ENABLED = _env_flag("INTERVIEW_EVENT_BUS_ENABLED")
REDIS_URL = str(os.getenv("REDIS_URL") or "").strip()

INTERVIEWER_DISPLAY_NAME = str(os.getenv("INTERVIEWER_DISPLAY_NAME") or "").strip()
LOG_LEVEL = str(os.getenv("LOG_LEVEL") or "INFO").strip().upper()
