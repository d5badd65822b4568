"""Method name to handler registry."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from functools import partial
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from rpcstream.rpc.reply import ReplySink

# Reply-style handler: receives params and a reply sink, may be a coroutine function.
Handler = Callable[[Any, "ReplySink"], Awaitable[None] | None]
# Return-style method: receives params and returns (or awaits) the result.
MethodFunc = Callable[[Any], Any]


class HandlerRegistry:
    """Mapping from method name to one or more registered handlers.

    Handlers bound to the same method are invoked in registration order and
    share one reply sink, so the first reply wins.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, method: str, handler: Handler) -> None:
        """Register a reply-style handler for a method."""
        if not isinstance(method, str):
            raise TypeError("method must be a string")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers.setdefault(method, []).append(handler)

    register = on

    def off(self, method: str, handler: Handler) -> None:
        handlers = self._handlers.get(method)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[method]

    def register_method(self, method: str, func: MethodFunc) -> None:
        """Register a function whose return value is the result.

        Exceptions raised by ``func`` become the error reply.
        """

        def _handler(params: Any, reply: ReplySink) -> Awaitable[None] | None:
            result = func(params)
            if inspect.isawaitable(result):
                return _finish(result, reply)
            reply(None, result)
            return None

        self.on(method, _handler)

    def method(self, name: str) -> Callable[[MethodFunc], MethodFunc]:
        """Decorator form of register_method."""

        def decorator(func: MethodFunc) -> MethodFunc:
            self.register_method(name, func)
            return func

        return decorator

    def has_handlers(self, method: str) -> bool:
        return bool(self._handlers.get(method))

    def handlers(self, method: str) -> list[Handler]:
        return list(self._handlers.get(method, ()))

    def methods(self) -> list[str]:
        return list(self._handlers)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def dispatch(self, method: str, params: Any, reply: ReplySink) -> None:
        """Invoke every handler bound to ``method``.

        Coroutines are scheduled as tasks; exceptions from either path are
        routed to ``reply`` unless it was already resolved.
        """
        for handler in self.handlers(method):
            try:
                outcome = handler(params, reply)
            except Exception as exc:
                _report_failure(method, reply, exc)
                continue

            if inspect.isawaitable(outcome):
                try:
                    asyncio.get_running_loop()
                except RuntimeError as exc:
                    # No event loop to run the coroutine on.
                    if inspect.iscoroutine(outcome):
                        outcome.close()
                    _report_failure(method, reply, exc)
                    continue
                task = asyncio.ensure_future(outcome)
                self._tasks.add(task)
                task.add_done_callback(partial(self._task_done, method, reply))

    def _task_done(self, method: str, reply: ReplySink, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("rpc.handler.cancelled method={}", method)
            return
        exc = task.exception()
        if exc is not None:
            _report_failure(method, reply, exc)

    async def join(self) -> None:
        """Wait until every scheduled handler task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()


async def _finish(result: Awaitable[Any], reply: ReplySink) -> None:
    reply(None, await result)


def _report_failure(method: str, reply: ReplySink, exc: BaseException) -> None:
    logger.opt(exception=exc).warning("rpc.handler.failed method={} error={}", method, exc)
    if not reply.done:
        reply(exc)


__all__ = ["Handler", "HandlerRegistry", "MethodFunc"]
