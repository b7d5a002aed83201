import math
from typing import Dict, List, Optional, Sequence
from blehub.core.errors import AttributeReadError, ScanSessionError
from blehub.core.schemas import DeviceAttributes
from blehub.core.source_base import AbstractAdvertisementSource


def _parse_device(entry: dict) -> DeviceAttributes:
    md = {int(k): bytes.fromhex(v) if isinstance(v, str) else bytes(v)
          for k, v in (entry.get('manufacturer_data') or {}).items()}
    return DeviceAttributes(
        address=entry['address'],
        name=entry.get('name'),
        address_type=entry.get('address_type', 'public'),
        rssi=entry.get('rssi'),
        manufacturer_data=md,
    )


class SimulatedAdvertisementSource(AbstractAdvertisementSource):
    """Replays a fixed set of advertisers, e.g. from YAML config.

    ``rssi_swing`` makes readings drift sinusoidally per poll. Addresses listed in
    ``failing`` raise AttributeReadError on every read.
    """
    def __init__(self, source_id: str = 'sim', kind: str = 'sim',
                 devices: Optional[Sequence] = None, rssi_swing: float = 0.0,
                 failing: Sequence[str] = (), **kwargs):
        super().__init__(source_id, kind)
        self.devices: Dict[str, DeviceAttributes] = {}
        for d in devices or []:
            attrs = d if isinstance(d, DeviceAttributes) else _parse_device(d)
            self.devices[attrs.address] = attrs
        self.rssi_swing = rssi_swing
        self.failing = set(failing)
        self.polls = 0

    async def list_devices(self) -> List[str]:
        if not self.running:
            raise ScanSessionError('list_devices', detail='scan session not started')
        self.polls += 1
        return list(self.devices)

    async def read_attributes(self, handle: str) -> Optional[DeviceAttributes]:
        if handle in self.failing:
            raise AttributeReadError('read_attributes', detail=f'{handle} unavailable')
        attrs = self.devices.get(handle)
        if attrs is None or not self.rssi_swing or attrs.rssi is None:
            return attrs
        drift = int(round(self.rssi_swing * math.sin(self.polls)))
        return attrs.model_copy(update={'rssi': attrs.rssi + drift})
