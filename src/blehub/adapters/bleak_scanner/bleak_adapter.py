import logging
from typing import List, Optional

from bleak import BleakScanner
from bleak.exc import BleakError

from blehub.core.errors import AttributeReadError, ScanSessionError
from blehub.core.schemas import DeviceAttributes
from blehub.core.source_base import AbstractAdvertisementSource


def _address_type(device) -> str:
    # Only BlueZ reports the address type; other backends leave it out
    details = getattr(device, "details", None)
    if isinstance(details, dict):
        props = details.get("props") or {}
        value = props.get("AddressType")
        if isinstance(value, str) and value:
            return value.lower()
    return "unknown"


class BleakAdvertisementSource(AbstractAdvertisementSource):
    """Passive BLE scan session backed by bleak.

    Handles are device addresses. The scanner keeps its discovered set between
    polls, so a device remains listed as long as the platform keeps it cached.
    """

    def __init__(self, source_id: str = "ble0", kind: str = "ble", adapter: Optional[str] = None,
                 scanner: Optional[BleakScanner] = None, **kwargs):
        super().__init__(source_id, kind)
        self.logger = logging.getLogger(f"blehub.adapters.bleak.{source_id}")
        self.adapter = adapter
        if scanner is None:
            scanner_kwargs = {"bluez": {"adapter": adapter}} if adapter else {}
            scanner = BleakScanner(**scanner_kwargs)
        self.scanner = scanner

    async def start(self):
        if self.running:
            return
        try:
            await self.scanner.start()
        except (BleakError, OSError) as e:
            raise ScanSessionError("start_scan", e, self.adapter or "default adapter") from e
        await super().start()
        self.logger.info("Scanning for BLE advertisements on %s", self.adapter or "default adapter")

    async def stop(self):
        if not self.running:
            return
        try:
            await self.scanner.stop()
        except (BleakError, OSError) as e:
            self.logger.warning("Scanner stop failed: %s", e)
        await super().stop()

    async def list_devices(self) -> List[str]:
        if not self.running:
            raise ScanSessionError("list_devices", detail="scan session not started")
        try:
            return list(self.scanner.discovered_devices_and_advertisement_data.keys())
        except (BleakError, OSError) as e:
            raise ScanSessionError("list_devices", e) from e

    async def read_attributes(self, handle: str) -> Optional[DeviceAttributes]:
        try:
            entry = self.scanner.discovered_devices_and_advertisement_data.get(handle)
        except (BleakError, OSError) as e:
            raise AttributeReadError("read_attributes", e, handle) from e
        if entry is None:
            return None
        device, adv = entry
        try:
            return DeviceAttributes(
                address=device.address,
                name=adv.local_name or device.name,
                address_type=_address_type(device),
                rssi=adv.rssi,
                manufacturer_data=dict(adv.manufacturer_data),
            )
        except (ValueError, TypeError, AttributeError) as e:
            raise AttributeReadError("read_attributes", e, handle) from e
