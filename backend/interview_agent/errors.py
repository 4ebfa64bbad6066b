class InterviewAgentError(Exception):
    """Base error for the interview agent core."""


class CompletionError(InterviewAgentError):
    """The completion service failed: transport, auth, rate limit, timeout or missing key."""


class ResponseParseError(InterviewAgentError):
    """The completion text did not contain JSON of the expected shape."""


class PreconditionError(InterviewAgentError):
    """The operation is not legal in the current phase or lacks required input."""
