from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeviceAttributes(BaseModel):
    """Decoded advertisement attributes of one device, as reported by a source."""
    model_config = ConfigDict(frozen=True)

    address: str
    name: Optional[str] = None
    address_type: str = "unknown"
    rssi: Optional[int] = None
    manufacturer_data: Dict[int, bytes] = Field(default_factory=dict)


class Sample(BaseModel):
    """One row of the accumulated dataset: a single manufacturer data entry of one device."""
    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(..., description="Capture instant, nanoseconds since the Unix epoch")
    device_name: str = ""
    address: str
    address_type: str
    signal_strength: int = 0
    vendor_id: int = Field(..., ge=0, le=0xFFFF)
    vendor_payload: str = Field(..., pattern="^([0-9A-F]{2})*$")

    @field_validator("timestamp")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("timestamp must be non-negative")
        return v


def hex_payload(data: bytes) -> str:
    return bytes(data).hex().upper()


def expand_observation(attrs: DeviceAttributes, timestamp: int) -> List[Sample]:
    """Flatten one device observation into one Sample per manufacturer data entry.

    Base attributes are shared by every produced row. A device without manufacturer
    data yields no rows.
    """
    name = attrs.name or ""
    rssi = attrs.rssi if attrs.rssi is not None else 0
    return [
        Sample(
            timestamp=timestamp,
            device_name=name,
            address=attrs.address,
            address_type=attrs.address_type,
            signal_strength=rssi,
            vendor_id=vendor_id,
            vendor_payload=hex_payload(payload),
        )
        for vendor_id, payload in attrs.manufacturer_data.items()
    ]


class RunSummary(BaseModel):
    run_id: int
    key: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    status: str = Field("running", pattern="^(running|exported|failed|cancelled)$")
    polls: int = 0
    devices_skipped: int = 0
    rows: int = 0
    size_bytes: Optional[int] = None
    error: Optional[str] = None


class RunHistoryResponse(BaseModel):
    runs: List[RunSummary]
