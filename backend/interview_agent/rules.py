"""
All pipeline thresholds and limits live here.
Changing these changes system behavior.
"""

# Transcript ring buffer
TRANSCRIPT_MAX_ENTRIES = 200
TRANSCRIPT_EVENT_WINDOW = 15

# Answer pairing (characters)
MIN_ANSWER_CHARS = 40
MIN_FLUSH_ANSWER_CHARS = 20

# Request-size limits (characters)
RESUME_PREFIX_CHARS = 8000
ANSWER_PREFIX_CHARS = 2000

# Topic detection
MIN_TERM_LENGTH = 3

# Caption intake
CAPTION_DEDUP_WINDOW_SEC = 2.0
CAPTION_MIN_CHARS = 4

# Completion output budgets (tokens)
SKILLS_MAX_TOKENS = 1024
QUESTIONS_MAX_TOKENS = 2048
ASSESSMENT_MAX_TOKENS = 1024
REPORT_MAX_TOKENS = 2048

# API key masking
API_KEY_VISIBLE_PREFIX = 12

# Per-connection backlog for /ws/events before events are dropped
EVENT_STREAM_QUEUE_SIZE = 256
