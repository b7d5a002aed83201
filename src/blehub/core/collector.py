import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from .accumulator import SampleAccumulator
from .errors import ScanSessionError
from .schemas import expand_observation

logger = logging.getLogger(__name__)


@dataclass
class CollectionStats:
    polls: int = 0
    devices_seen: int = 0
    devices_skipped: int = 0
    samples: int = 0


class SampleCollector:
    """Polls an advertisement source for a fixed window and accumulates Samples.

    Every poll cycle stamps its rows with a single capture instant. Per-device read
    failures skip that device for the cycle; a failure to list devices ends the run.
    """

    def __init__(
        self,
        wall_clock_ns: Callable[[], int] = time.time_ns,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        query_timeout: Optional[float] = None,
    ):
        self._wall_clock_ns = wall_clock_ns
        self._monotonic = monotonic
        self._sleep = sleep
        self.query_timeout = query_timeout
        self.stats = CollectionStats()

    async def run(self, source, poll_interval: float, total_duration: float) -> SampleAccumulator:
        if poll_interval <= 0 or total_duration <= 0:
            raise ValueError("poll_interval and total_duration must be positive")
        if poll_interval > total_duration:
            logger.warning("poll interval %.1fs exceeds duration %.1fs; a single poll will run",
                           poll_interval, total_duration)

        self.stats = CollectionStats()
        acc = SampleAccumulator()
        last_stamp = 0
        started = self._monotonic()
        while self._monotonic() - started < total_duration:
            handles = await self._list_devices(source)
            # wall clock may step backwards; stamps must not
            captured_at = last_stamp = max(self._wall_clock_ns(), last_stamp)
            for handle in handles:
                await self._sample_device(source, handle, captured_at, acc)
            self.stats.polls += 1
            await self._sleep(poll_interval)

        logger.info("Collection finished: %d polls, %d devices seen, %d skipped, %d samples",
                    self.stats.polls, self.stats.devices_seen, self.stats.devices_skipped,
                    self.stats.samples)
        return acc

    async def _list_devices(self, source):
        if self.query_timeout is None:
            return await source.list_devices()
        try:
            return await asyncio.wait_for(source.list_devices(), self.query_timeout)
        except asyncio.TimeoutError as e:
            raise ScanSessionError("list_devices", e, f"no answer within {self.query_timeout}s") from e

    async def _sample_device(self, source, handle, captured_at: int, acc: SampleAccumulator):
        self.stats.devices_seen += 1
        try:
            attrs = await source.read_attributes(handle)
        except Exception as e:
            # one device failing to read never ends the window
            self.stats.devices_skipped += 1
            logger.debug("Skipping %s this poll: %s", handle, e)
            return
        if attrs is None:
            return
        rows = expand_observation(attrs, captured_at)
        acc.extend(rows)
        self.stats.samples += len(rows)


async def collect(source, poll_interval: float, total_duration: float) -> SampleAccumulator:
    return await SampleCollector().run(source, poll_interval, total_duration)
