"""
In-process stand-in for the worker actor channel.

The tile worker asks its actor for auxiliary resources (glyphs, icons) with
``send(action, params, callback)``. Across a real worker boundary that call
always completes on a later turn of the event loop; :class:`ActorStub` keeps
that contract so the benchmarked code suspends exactly as it would in
production, even when the handler answers synchronously.

Scheduling contract: ``send`` never dispatches before it returns. Dispatch is
queued with ``loop.call_soon`` and the handler receives a one-shot wrapper
around the caller's callback: the first reply is delivered, later ones are
dropped. An unrecognized action is a bug in the benchmarked code: the
callback is never invoked and the violation hook (process termination by
default) runs instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any, NoReturn

from tilebench.harness.errors import ProtocolViolation

logger = logging.getLogger(__name__)

Callback = Callable[[BaseException | None, Any], None]
Handler = Callable[[Any, Callback], None]
ViolationHook = Callable[[ProtocolViolation], None]


def terminate(violation: ProtocolViolation) -> NoReturn:
    """Default violation hook: stop the process from inside the event loop."""
    raise SystemExit(str(violation)) from violation


class ActorStub:
    """Dispatch actor messages to a fixed set of handlers on a later loop turn."""

    def __init__(
        self,
        handlers: Mapping[str, Handler],
        *,
        on_violation: ViolationHook = terminate,
    ) -> None:
        self._handlers = dict(handlers)
        self._on_violation = on_violation

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def send(self, action: str, params: Any, callback: Callback) -> None:
        """Queue a one-shot request; the callback fires on a later loop turn."""
        loop = asyncio.get_running_loop()
        loop.call_soon(self._dispatch, action, params, callback)

    async def request(self, action: str, params: Any) -> Any:
        """Awaitable form of :meth:`send`."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _settle(error: BaseException | None, result: Any) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        self.send(action, params, _settle)
        return await future

    def _dispatch(self, action: str, params: Any, callback: Callback) -> None:
        handler = self._handlers.get(action)
        if handler is None:
            violation = ProtocolViolation(action, self.actions)
            logger.critical(str(violation))
            self._on_violation(violation)
            return
        delivered = False

        def _reply(error: BaseException | None, result: Any) -> None:
            nonlocal delivered
            if delivered:
                logger.error(f"Duplicate reply to '{action}' ignored")
                return
            delivered = True
            callback(error, result)

        try:
            handler(params, _reply)
        except Exception as exc:
            if delivered:
                logger.error(f"Handler for '{action}' failed after replying: {exc}")
                raise
            # Deliver through the channel so the awaiting parse fails instead of hanging.
            _reply(exc, None)
