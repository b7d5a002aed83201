from abc import ABC, abstractmethod
from typing import Hashable, Optional, Sequence
from .schemas import DeviceAttributes


class AbstractAdvertisementSource(ABC):
    """Owned handle on a scanning session.

    The collector only needs ``list_devices`` and ``read_attributes``; any object
    providing both coroutines can be passed in its place. Scan state is kept
    between polls, so a device stays listed while it keeps advertising.
    """

    def __init__(self, source_id: str = "ble", kind: str = "ble"):
        self.source_id = source_id
        self.kind = kind
        self.running = False

    async def start(self):
        self.running = True

    async def stop(self):
        self.running = False

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    @abstractmethod
    async def list_devices(self) -> Sequence[Hashable]:
        """Current device handles. Raises ScanSessionError when the session is broken."""

    @abstractmethod
    async def read_attributes(self, handle: Hashable) -> Optional[DeviceAttributes]:
        """Decoded attributes of one device. Raises AttributeReadError on a per-device miss."""
