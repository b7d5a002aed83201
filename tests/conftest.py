"""Shared fakes: a scriptable advertisement source and a virtual clock."""

import pytest

from blehub.core.errors import AttributeReadError, ScanSessionError
from blehub.core.schemas import DeviceAttributes

EPOCH_NS = 1_700_000_000_000_000_000


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def wall_ns(self):
        return EPOCH_NS + int(self.now * 1_000_000_000)

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSource:
    """Duck-typed source: per-poll device lists, optional failures."""

    def __init__(self, devices, fail_reads=(), fail_list_on_poll=None):
        self.devices = {d.address: d for d in devices}
        self.fail_reads = set(fail_reads)
        self.fail_list_on_poll = fail_list_on_poll
        self.polls = 0

    async def list_devices(self):
        self.polls += 1
        if self.fail_list_on_poll == self.polls:
            raise ScanSessionError("list_devices", detail="adapter vanished")
        return list(self.devices)

    async def read_attributes(self, handle):
        if handle in self.fail_reads:
            raise AttributeReadError("read_attributes", detail=handle)
        return self.devices.get(handle)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sensor1():
    return DeviceAttributes(
        address="AA:BB:CC:DD:EE:FF",
        name="Sensor1",
        address_type="public",
        rssi=-42,
        manufacturer_data={0x004C: bytes([0x02, 0x15])},
    )
