"""Notification listener — PG LISTEN → one detached pipeline task per event.

Learn: asyncpg delivers notifications through a synchronous callback on the
event loop. The callback does nothing but spawn a task, so the listener is
free to take the next notification straight away.

Each task runs the whole pipeline for one payload:

    decode → dispatch (HTTP) → encode → callback (pooled DB connection)

and catches every failure itself. A bad payload, an unreachable URL, a
non-JSON response or a failing callback is logged and dropped; other
notifications never notice. Tasks run concurrently and finish in no
particular order.

The only fatal condition is losing the LISTEN connection: there is no
reconnect, so run_forever() raises ListenerClosedError.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import asyncpg
import structlog

from http_port.errors import ListenerClosedError, PipelineError
from http_port.services.callback_executor import CallbackExecutor
from http_port.services.decoder import decode_request
from http_port.services.encoder import encode_response
from http_port.services.http_dispatch import HttpDispatcher

logger = structlog.get_logger()

STAGES = ("decode", "dispatch", "encode", "callback", "unexpected")


@dataclass
class ListenerStats:
    """Runtime statistics for monitoring."""
    received: int = 0
    completed: int = 0
    failed: dict = field(default_factory=lambda: {stage: 0 for stage in STAGES})
    started_at: Optional[datetime] = None


class NotificationListener:
    def __init__(
        self,
        dispatcher: HttpDispatcher,
        executor: CallbackExecutor,
        channel: str,
    ):
        self.dispatcher = dispatcher
        self.executor = executor
        self.channel = channel
        self.stats = ListenerStats()
        self._conn: Optional[asyncpg.Connection] = None
        self._done: Optional[asyncio.Future] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    # ─── Subscription lifecycle ───────────────────────────

    async def start(self, conn: asyncpg.Connection) -> None:
        """Subscribe ``conn`` to the channel (asyncpg issues the LISTEN)."""
        self._conn = conn
        self._done = asyncio.get_running_loop().create_future()
        conn.add_termination_listener(self._on_terminated)
        await conn.add_listener(self.channel, self._on_notification)
        self.stats.started_at = datetime.now(timezone.utc)
        logger.info("http_port.listening", channel=self.channel)

    async def run_forever(self) -> None:
        """Block until stop() is called or the connection goes away."""
        if self._done is None:
            raise RuntimeError("Listener not started. Call start() first.")
        await self._done

    def stop(self) -> None:
        """Ask run_forever() to return. Safe to call from a signal handler."""
        if self._done is not None and not self._done.done():
            logger.info("http_port.stopping", in_flight=self.in_flight)
            self._done.set_result(None)

    async def close(self) -> None:
        """Unsubscribe and close the LISTEN connection."""
        conn, self._conn = self._conn, None
        if conn is None or conn.is_closed():
            return
        try:
            await conn.remove_listener(self.channel, self._on_notification)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.warning("http_port.unlisten_failed", channel=self.channel, error=str(e))
        await conn.close()

    def _on_terminated(self, conn) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_exception(
                ListenerClosedError(f"notification connection for {self.channel!r} closed")
            )

    # ─── Per-notification tasks ───────────────────────────

    def _on_notification(self, conn, pid, channel, payload) -> None:
        """Called by asyncpg for every NOTIFY on the channel."""
        self.spawn(payload)

    def spawn(self, payload: str) -> asyncio.Task:
        """Schedule the pipeline for ``payload`` without waiting for it."""
        self.stats.received += 1
        task = asyncio.get_running_loop().create_task(self.process(payload))
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def process(self, payload: str) -> bool:
        """Run the pipeline for one payload. Never raises; returns success."""
        callback = None
        try:
            request = decode_request(payload)
            callback = request.callback
            response = await self.dispatcher.send(request)
            envelope = encode_response(response.status_code, response.content, callback)
            await self.executor.execute(callback, envelope)
        except PipelineError as e:
            self.stats.failed[e.stage] += 1
            logger.warning("http_port.request_error", **e.log_context())
            return False
        except Exception:
            self.stats.failed["unexpected"] += 1
            logger.exception("http_port.unexpected_error", callback=callback, payload=payload)
            return False

        self.stats.completed += 1
        return True

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight tasks. Returns False if some are still running."""
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        return not pending

    def cancel_pending(self) -> int:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)

    # ─── Stats ────────────────────────────────────────────

    def get_stats(self) -> dict:
        """Return listener statistics for monitoring."""
        return {
            "channel": self.channel,
            "received": self.stats.received,
            "completed": self.stats.completed,
            "failed": dict(self.stats.failed),
            "in_flight": self.in_flight,
            "started_at": (
                self.stats.started_at.isoformat()
                if self.stats.started_at
                else None
            ),
        }
