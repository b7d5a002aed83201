from typing import Iterable
import pyarrow as pa
from ..core.accumulator import SampleAccumulator
from ..core.errors import EncodingError
from ..core.schemas import Sample

SCHEMA = pa.schema([
    pa.field("timestamp", pa.timestamp("ns")),
    pa.field("name", pa.string()),
    pa.field("address_type", pa.string()),
    pa.field("address", pa.string()),
    pa.field("rssi", pa.int32()),
    # u16 on the air, widened to int32 in the stored schema
    pa.field("manufacturer_id", pa.int32()),
    pa.field("manufacturer_data", pa.string()),
])


def encode(samples: Iterable[Sample]) -> pa.Table:
    """Split Samples into the seven fixed columns, keeping append order.

    Accepts a SampleAccumulator (consumed here) or any iterable of Samples.
    """
    rows = samples.consume() if isinstance(samples, SampleAccumulator) else tuple(samples)
    columns = {name: [] for name in SCHEMA.names}
    for s in rows:
        columns["timestamp"].append(s.timestamp)
        columns["name"].append(s.device_name)
        columns["address_type"].append(s.address_type)
        columns["address"].append(s.address)
        columns["rssi"].append(s.signal_strength)
        columns["manufacturer_id"].append(s.vendor_id)
        columns["manufacturer_data"].append(s.vendor_payload)
    try:
        arrays = [pa.array(columns[f.name], type=f.type) for f in SCHEMA]
        table = pa.Table.from_arrays(arrays, schema=SCHEMA)
    except (pa.ArrowInvalid, pa.ArrowTypeError, OverflowError) as e:
        raise EncodingError("encode", e) from e
    if table.num_rows != len(rows):
        raise EncodingError("encode", detail=f"expected {len(rows)} rows, built {table.num_rows}")
    return table
