r"""Immutable, cancellable request contexts.

A context carries a cancellation signal, an optional deadline and
request-scoped values across API boundaries. Contexts form a chain: each
derived context keeps a reference to its parent, never mutates it, and
is cancelled whenever its parent is. A context travels with an outbound
``httpx.Request`` in ``request.extensions["context"]``.

Example:
    ```pycon
    >>> from retransport.context import background, with_cancel, with_value
    >>> ctx, cancel = with_cancel(background())
    >>> child = with_value(ctx, "tenant", "acme")
    >>> child.value("tenant")
    'acme'
    >>> child.done()
    False
    >>> cancel()
    >>> child.done()
    True
    >>> child.err()
    ContextCancelledError('context canceled')

    ```
"""

from __future__ import annotations

__all__ = [
    "CancelFunc",
    "Context",
    "ContextCancelledError",
    "ContextError",
    "DeadlineExceededError",
    "background",
    "with_cancel",
    "with_deadline",
    "with_timeout",
    "with_value",
]

import asyncio
import threading
import time
from collections.abc import Callable
from typing import Any

CancelFunc = Callable[[], None]


class ContextError(Exception):
    """Base class of the errors reported by ``Context.err``."""


class ContextCancelledError(ContextError):
    """Reported when a context was cancelled explicitly."""

    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceededError(ContextError):
    """Reported when the deadline of a context has passed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


def _noop() -> None:
    pass


class Context:
    """A context that is never cancelled, has no deadline and no values.

    This is the root of every context chain, see ``background()``.
    Derived contexts override the relevant queries and delegate the rest
    to their parent.
    """

    def __init__(self, parent: Context | None = None) -> None:
        self._parent = parent

    def __repr__(self) -> str:
        if self._parent is None:
            return "Context.background"
        return f"{self._parent!r}.{self.__class__.__name__.lstrip('_')}"

    @property
    def parent(self) -> Context | None:
        return self._parent

    @property
    def deadline(self) -> float | None:
        """The ``time.monotonic()`` instant at which the context expires,
        or ``None`` if it has no deadline."""
        if self._parent is None:
            return None
        return self._parent.deadline

    def value(self, key: Any) -> Any:
        """Return the value associated with ``key`` in this context chain,
        or ``None`` if no context of the chain carries it."""
        if self._parent is None:
            return None
        return self._parent.value(key)

    def err(self) -> ContextError | None:
        """Return why the context is done, or ``None`` if it is not."""
        if self._parent is None:
            return None
        return self._parent.err()

    def done(self) -> bool:
        """Indicate if the context was cancelled or its deadline passed."""
        return self.err() is not None

    def wait(self, timeout: float) -> bool:
        """Block until the context is done or ``timeout`` seconds elapsed.

        Args:
            timeout: The maximum time to wait, in seconds.

        Returns:
            ``True`` if the context is done, ``False`` if the timeout
                elapsed first.
        """
        if self._parent is None:
            if timeout > 0:
                time.sleep(timeout)
            return False
        return self._parent.wait(timeout)

    async def wait_async(self, timeout: float) -> bool:
        """Asyncio version of ``wait``; only the calling task is
        suspended."""
        if self._parent is None:
            if timeout > 0:
                await asyncio.sleep(timeout)
            return False
        return await self._parent.wait_async(timeout)

    def _register(self, callback: CancelFunc) -> CancelFunc:
        """Register ``callback`` to run once when the context is done.

        The callback runs immediately if the context is already done.
        Returns a function that unregisters the callback.
        """
        if self._parent is None:
            return _noop
        return self._parent._register(callback)


class _CancelContext(Context):
    def __init__(self, parent: Context) -> None:
        super().__init__(parent)
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._err: ContextError | None = None
        self._callbacks: list[CancelFunc] = []
        self._unregister_parent = _noop
        self._unregister_parent = parent._register(self._cancel_from_parent)

    def err(self) -> ContextError | None:
        with self._lock:
            err = self._err
        if err is None and self._remaining(float("inf")) <= 0:
            # Deadlines expire on query
            self._cancel(DeadlineExceededError())
            with self._lock:
                err = self._err
        return err

    def wait(self, timeout: float) -> bool:
        end = time.monotonic() + timeout
        while True:
            remaining = self._remaining(end)
            if remaining <= 0:
                return self.done()
            if self._event.wait(remaining):
                return True

    async def wait_async(self, timeout: float) -> bool:
        if self.done():
            return True
        loop = asyncio.get_running_loop()
        event = asyncio.Event()
        unregister = self._register(lambda: loop.call_soon_threadsafe(event.set))
        end = time.monotonic() + timeout
        try:
            while True:
                remaining = self._remaining(end)
                if remaining <= 0:
                    return self.done()
                try:
                    await asyncio.wait_for(event.wait(), remaining)
                except asyncio.TimeoutError:
                    continue
                return True
        finally:
            unregister()

    def _remaining(self, end: float) -> float:
        """Return the seconds left until ``end`` or the deadline of the
        context, whichever comes first."""
        deadline = self.deadline
        if deadline is not None:
            end = min(end, deadline)
        return end - time.monotonic()

    def _register(self, callback: CancelFunc) -> CancelFunc:
        with self._lock:
            if self._err is None:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return _noop

    def _unregister(self, callback: CancelFunc) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _cancel_from_parent(self) -> None:
        self._cancel(self._parent.err() or ContextCancelledError())

    def _cancel(self, error: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = error
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        self._unregister_parent()
        for callback in callbacks:
            callback()


class _DeadlineContext(_CancelContext):
    def __init__(self, parent: Context, deadline: float) -> None:
        parent_deadline = parent.deadline
        self._deadline = deadline if parent_deadline is None else min(deadline, parent_deadline)
        super().__init__(parent)

    @property
    def deadline(self) -> float | None:
        return self._deadline


class _ValueContext(Context):
    def __init__(self, parent: Context, key: Any, value: Any) -> None:
        super().__init__(parent)
        self._key = key
        self._value = value

    def value(self, key: Any) -> Any:
        if key == self._key:
            return self._value
        return super().value(key)


_BACKGROUND = Context()


def background() -> Context:
    r"""Return the root context: never cancelled, no deadline, no values.

    Returns:
        The background context.
    """
    return _BACKGROUND


def with_cancel(parent: Context) -> tuple[Context, CancelFunc]:
    r"""Derive a context that is done when ``cancel`` is called or when
    ``parent`` is done, whichever happens first.

    Args:
        parent: The parent context.

    Returns:
        The derived context and its cancel function. Calling the cancel
            function more than once has no effect.

    Example:
        ```pycon
        >>> from retransport.context import background, with_cancel
        >>> parent, cancel_parent = with_cancel(background())
        >>> child, cancel_child = with_cancel(parent)
        >>> cancel_child()
        >>> child.done(), parent.done()
        (True, False)

        ```
    """
    ctx = _CancelContext(parent)
    return ctx, lambda: ctx._cancel(ContextCancelledError())


def with_deadline(parent: Context, deadline: float) -> tuple[Context, CancelFunc]:
    r"""Derive a context that is done at ``deadline`` at the latest.

    Args:
        parent: The parent context.
        deadline: The expiration instant, on the ``time.monotonic()``
            clock. A parent deadline that is earlier wins.

    Returns:
        The derived context and its cancel function.
    """
    ctx = _DeadlineContext(parent, deadline)
    return ctx, lambda: ctx._cancel(ContextCancelledError())


def with_timeout(parent: Context, timeout: float) -> tuple[Context, CancelFunc]:
    r"""Derive a context that is done after ``timeout`` seconds at the
    latest.

    Args:
        parent: The parent context.
        timeout: The time budget in seconds.

    Returns:
        The derived context and its cancel function.

    Example:
        ```pycon
        >>> from retransport.context import background, with_timeout
        >>> ctx, cancel = with_timeout(background(), 0.0)
        >>> ctx.err()
        DeadlineExceededError('context deadline exceeded')

        ```
    """
    return with_deadline(parent, time.monotonic() + timeout)


def with_value(parent: Context, key: Any, value: Any) -> Context:
    r"""Derive a context carrying ``value`` under ``key``.

    Use a private object as ``key`` to avoid collisions between
    unrelated packages.

    Args:
        parent: The parent context.
        key: The key, compared with ``==``.
        value: The value.

    Returns:
        The derived context.
    """
    return _ValueContext(parent, key, value)
