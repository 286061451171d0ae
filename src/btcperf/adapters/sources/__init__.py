"""
Position Sources - Where Positions Come From

Sources turn raw loan records into Position objects for a processing pass.
"""

from btcperf.adapters.sources.json_file import JsonPositionSource, is_pending

__all__ = ["JsonPositionSource", "is_pending"]
