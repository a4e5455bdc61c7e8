# =============================================================================
# core/errors.py  —  Exception taxonomy
# =============================================================================
#
#   AgentError
#   ├── ConfigError            bad environment / .env values
#   ├── ModelError             the language model failed or timed out (fatal to a turn)
#   ├── ToolTransportError     the tool server was unreachable / slow / malformed
#   └── SessionConflictError   a second request arrived for a leased session
#
# "City not found" is not an exception: it is a normal ToolResult status.
# =============================================================================


class AgentError(Exception):
    """Base class for every error raised by this project."""

    retryable = False


class ConfigError(AgentError):
    pass


class ModelError(AgentError):
    """The model capability failed; the current turn cannot continue."""


class ToolTransportError(AgentError):
    """The tool server could not be reached or answered with garbage."""

    retryable = True


class SessionConflictError(AgentError):
    """Another request currently holds the lease for this session."""

    retryable = True

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id!r} is busy with another request")
        self.session_id = session_id
