import asyncio
import pytest
from blehub.core.collector import SampleCollector
from blehub.core.errors import ScanSessionError
from blehub.core.schemas import DeviceAttributes
from conftest import EPOCH_NS, FakeSource


def _collector(clock, **kw):
    return SampleCollector(wall_clock_ns=clock.wall_ns, monotonic=clock.monotonic, sleep=clock.sleep, **kw)


def test_single_device_single_poll(clock, sensor1):
    acc = asyncio.run(_collector(clock).run(FakeSource([sensor1]), 10, 10))
    rows = acc.consume()
    assert len(rows) == 1
    s = rows[0]
    assert s.timestamp == EPOCH_NS
    assert s.device_name == 'Sensor1'
    assert s.address_type == 'public'
    assert s.address == 'AA:BB:CC:DD:EE:FF'
    assert s.signal_strength == -42
    assert s.vendor_id == 76
    assert s.vendor_payload == '0215'


def test_window_of_30s_polled_every_10s_gives_three_polls(clock, sensor1):
    collector = _collector(clock)
    acc = asyncio.run(collector.run(FakeSource([sensor1]), 10, 30))
    rows = acc.consume()
    assert len(rows) == 3
    assert [r.timestamp for r in rows] == [EPOCH_NS, EPOCH_NS + 10 * 10**9, EPOCH_NS + 20 * 10**9]
    assert collector.stats.polls == 3
    assert clock.sleeps == [10, 10, 10]


def test_failed_read_skips_only_that_device(clock, sensor1):
    broken = DeviceAttributes(address='00:00:00:00:00:01', manufacturer_data={1: b'\x01'})
    source = FakeSource([broken, sensor1], fail_reads={broken.address})
    collector = _collector(clock)
    rows = asyncio.run(collector.run(source, 10, 20)).consume()
    assert [r.address for r in rows] == [sensor1.address, sensor1.address]
    assert collector.stats.devices_skipped == 2
    assert collector.stats.devices_seen == 4


def test_list_failure_propagates(clock, sensor1):
    source = FakeSource([sensor1], fail_list_on_poll=2)
    with pytest.raises(ScanSessionError):
        asyncio.run(_collector(clock).run(source, 10, 60))
    assert source.polls == 2


def test_rows_of_one_cycle_share_timestamp_and_keep_order(clock, sensor1):
    other = DeviceAttributes(address='C0:FF:EE:00:11:22', address_type='random', rssi=-70,
                             manufacturer_data={89: b'\x02\x01', 1177: b'\x05'})
    rows = asyncio.run(_collector(clock).run(FakeSource([sensor1, other]), 5, 5)).consume()
    assert len(rows) == 3
    assert len({r.timestamp for r in rows}) == 1
    assert rows[0].address == sensor1.address
    assert {(r.vendor_id, r.vendor_payload) for r in rows[1:]} == {(89, '0201'), (1177, '05')}


def test_device_without_payload_and_missing_device_add_nothing(clock, sensor1):
    bare = DeviceAttributes(address='12:34:56:78:9A:BC', name='bare', rssi=-50)
    source = FakeSource([bare, sensor1])
    source.devices['gone'] = None
    rows = asyncio.run(_collector(clock).run(source, 10, 10)).consume()
    assert [r.address for r in rows] == [sensor1.address]


def test_timestamps_never_go_backwards(sensor1):
    stamps = iter([500, 400, 600])
    now = {'t': 0.0}

    async def sleep(d):
        now['t'] += d

    collector = SampleCollector(wall_clock_ns=lambda: next(stamps), monotonic=lambda: now['t'], sleep=sleep)
    rows = asyncio.run(collector.run(FakeSource([sensor1]), 1, 3)).consume()
    assert [r.timestamp for r in rows] == [500, 500, 600]


def test_rejects_non_positive_durations(clock, sensor1):
    with pytest.raises(ValueError):
        asyncio.run(_collector(clock).run(FakeSource([sensor1]), 0, 10))
    with pytest.raises(ValueError):
        asyncio.run(_collector(clock).run(FakeSource([sensor1]), 10, -1))


def test_interval_longer_than_duration_polls_once(clock, sensor1):
    rows = asyncio.run(_collector(clock).run(FakeSource([sensor1]), 60, 10)).consume()
    assert len(rows) == 1


def test_hung_source_times_out_as_scan_session_error(sensor1):
    class HangingSource(FakeSource):
        async def list_devices(self):
            await asyncio.sleep(10)

    collector = SampleCollector(query_timeout=0.01)
    with pytest.raises(ScanSessionError):
        asyncio.run(collector.run(HangingSource([sensor1]), 1, 1))


def test_unexpected_read_exception_skips_only_that_device(clock, sensor1):
    class FlakyRadio(FakeSource):
        async def read_attributes(self, handle):
            if handle == '00:00:00:00:00:01':
                raise ConnectionError('transient read failure')
            return await super().read_attributes(handle)

    flaky = DeviceAttributes(address='00:00:00:00:00:01', manufacturer_data={1: b'\x01'})
    collector = _collector(clock)
    rows = asyncio.run(collector.run(FlakyRadio([flaky, sensor1]), 10, 10)).consume()
    assert [r.address for r in rows] == [sensor1.address]
    assert collector.stats.devices_skipped == 1


def test_cancellation_during_read_is_not_swallowed(clock, sensor1):
    class CancelledRadio(FakeSource):
        async def read_attributes(self, handle):
            raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(_collector(clock).run(CancelledRadio([sensor1]), 10, 10))
