"""Error hierarchy.

Learn: Two tiers of failure exist:
- Startup/fatal errors (ConfigError, StartupError, ListenerClosedError)
  end the process with a non-zero exit code.
- PipelineError subclasses belong to a single notification. They are
  logged with enough context to diagnose the event and then dropped;
  they never reach the listener loop.
"""

from typing import Any, Optional


class HttpPortError(Exception):
    """Base for every error raised by http_port."""


class ConfigError(HttpPortError):
    pass


class StartupError(HttpPortError):
    pass


class ListenerClosedError(HttpPortError):
    pass


# ─── Per-notification failures ─────────────────────────


class PipelineError(HttpPortError):
    """Failure of one stage of one notification's pipeline."""

    stage: str = "pipeline"

    def __init__(
        self,
        message: str,
        *,
        callback: Optional[str] = None,
        payload: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.callback = callback
        self.payload = payload

    def log_context(self) -> dict[str, Any]:
        ctx: dict[str, Any] = {"stage": self.stage, "error": self.message}
        if self.callback is not None:
            ctx["callback"] = self.callback
        if self.payload is not None:
            ctx["payload"] = self.payload
        return ctx


class DecodeError(PipelineError):
    stage = "decode"


class DispatchError(PipelineError):
    stage = "dispatch"


class EncodeError(PipelineError):
    stage = "encode"


class CallbackError(PipelineError):
    stage = "callback"


class PoolTimeoutError(CallbackError):
    """No pooled connection became available within the acquire timeout."""
