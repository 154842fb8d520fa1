"""Admission control for concurrent render operations."""

import logging
from contextlib import contextmanager
from typing import Iterator

from pageshot.exceptions import CapacityError

logger = logging.getLogger(__name__)

MAX_CONCURRENT_PAGES = 50


class AdmissionController:
    """Counts in-flight renders and rejects new ones at the ceiling.

    There is no queue: a caller that finds the controller full is turned away
    immediately. Counter updates never span an ``await`` so they are atomic
    with respect to other requests on the event loop.
    """

    def __init__(self, limit: int = MAX_CONCURRENT_PAGES) -> None:
        self.limit = limit
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def try_enter(self) -> bool:
        if self._in_flight >= self.limit:
            return False
        self._in_flight += 1
        return True

    def leave(self) -> None:
        if self._in_flight <= 0:
            raise RuntimeError("leave() called without a matching try_enter()")
        self._in_flight -= 1

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold one admission slot for the duration of the block.

        Raises:
            CapacityError: if the ceiling has been reached.
        """
        if not self.try_enter():
            logger.warning("Admission rejected: %d renders in flight", self._in_flight)
            raise CapacityError()
        try:
            yield
        finally:
            self.leave()


admission = AdmissionController()
