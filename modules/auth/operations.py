"""
Per-operation loading state.

Every auth call is tracked under its own AuthOperation record. The service
is "loading" while at least one operation is in flight, so an operation
that finishes early cannot clear the flag for one still running.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from shared.exceptions import ColdWaterError

from .interfaces import Unsubscribe
from .models import AuthOperation

logger = logging.getLogger(__name__)

OperationListener = Callable[[AuthOperation], None]


class OperationTracker:
    """Registry of in-flight auth operations."""

    def __init__(self) -> None:
        self._in_flight: dict[str, AuthOperation] = {}
        self._listeners: list[OperationListener] = []

    @property
    def is_loading(self) -> bool:
        return bool(self._in_flight)

    @property
    def in_flight(self) -> list[AuthOperation]:
        return list(self._in_flight.values())

    def add_listener(self, listener: OperationListener) -> Unsubscribe:
        """Call listener on every operation start and finish."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @asynccontextmanager
    async def track(self, kind: str) -> AsyncIterator[AuthOperation]:
        """
        Track one operation for the duration of the block.

        The block marks success with op.succeed(); leaving it normally
        without doing so counts as success with no identity. Exceptions
        mark the operation failed and propagate unchanged.
        """
        op = AuthOperation(kind=kind)
        op.start()
        self._in_flight[op.id] = op
        logger.debug(f"Auth operation {kind} started ({op.id})")
        self._notify(op)

        try:
            yield op
        except ColdWaterError as e:
            op.fail(e.code)
            logger.warning(f"Auth operation {kind} failed: {e.code}: {e.message}")
            raise
        except asyncio.CancelledError:
            op.fail("CANCELLED")
            raise
        except Exception as e:
            op.fail(type(e).__name__)
            logger.warning(f"Auth operation {kind} failed unexpectedly: {e!r}")
            raise
        else:
            if not op.is_finished:
                op.succeed(None)
            logger.info(f"Auth operation {kind} succeeded")
        finally:
            self._in_flight.pop(op.id, None)
            self._notify(op)

    def _notify(self, op: AuthOperation) -> None:
        for listener in list(self._listeners):
            listener(op)
