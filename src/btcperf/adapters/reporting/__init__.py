"""
Reporting Adapters - Result and Totals Sinks
"""

from btcperf.adapters.reporting.log_sink import LoggingSink

__all__ = ["LoggingSink"]
