'''
Availability of one room type for the dates currently selected on a page.
'''
import asyncio
import logging
from datetime import date
from typing import Any, Optional, Protocol

from Backend.errors import BackendError
from Hotels.structure import AvailabilityResult, RoomType

logger = logging.getLogger(__name__)


class AvailabilitySource(Protocol):
    async def check_availability(self, room_type_id: int, check_in: date, check_out: date) -> dict[str, Any]:
        ...


class AvailabilityQuery:
    """
    Keeps the availability result in step with the selected dates.

    Each ``refresh`` supersedes the previous one: the in-flight request is
    cancelled, and whatever it returns is discarded unless it was issued for
    the parameters that are current when it completes.
    """

    def __init__(self, source: AvailabilitySource, room_type: RoomType):
        self._source = source
        self.room_type = room_type
        self._key: Optional[tuple[int, date, date]] = None
        self._pending: Optional[asyncio.Task] = None
        self.result: Optional[AvailabilityResult] = None
        self.selected_room_number: Optional[str] = None

    @property
    def key(self) -> Optional[tuple[int, date, date]]:
        return self._key

    async def refresh(self, check_in: date, check_out: date) -> Optional[AvailabilityResult]:
        """
        Query availability for [check_in, check_out).

        Returns:
            The result for the current parameters once known. When this call
            was superseded before its response arrived, the state of the newer
            parameters is returned unchanged (``None`` while still pending).
        """

        key = (self.room_type.id, check_in, check_out)
        self._key = key
        self.result = None
        self.selected_room_number = None
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

        task = asyncio.ensure_future(self._source.check_availability(self.room_type.id, check_in, check_out))
        self._pending = task
        await asyncio.wait({task})

        if task.cancelled() or self._key != key:
            logger.debug(
                "Discarding stale availability response",
                extra={"room_type_id": self.room_type.id, "check_in": str(check_in), "check_out": str(check_out)},
            )
            return self.result

        self.result = self._resolve(task, check_in, check_out)
        return self.result

    def _resolve(self, task: asyncio.Task, check_in: date, check_out: date) -> AvailabilityResult:
        error = task.exception()
        if error is not None:
            if not isinstance(error, BackendError):
                raise error
            logger.warning(
                "Availability query failed, availability unknown",
                extra={"room_type_id": self.room_type.id, "error": error.message},
            )
            return AvailabilityResult.unknown(self.room_type.id, check_in, check_out)
        try:
            return AvailabilityResult.from_payload(task.result(), self.room_type, check_in, check_out)
        except (TypeError, ValueError):
            logger.exception("Malformed availability payload", extra={"room_type_id": self.room_type.id})
            return AvailabilityResult.unknown(self.room_type.id, check_in, check_out)

    def select_room_number(self, room_number: str) -> None:
        """
        Pick one specific room among the available ones.

        Raises:
            ValueError: If the number is not in the current available set.
        """
        if self.result is None or room_number not in self.result.room_numbers:
            raise ValueError(f"Room {room_number} is not available for the selected dates.")
        self.selected_room_number = room_number

    def close(self) -> None:
        '''Cancel any in-flight query; called when the page goes away.'''
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
