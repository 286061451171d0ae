"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Input normalisation (amounts, dates)
- Request throttling and throttle detection
- Logging configuration
"""

from btcperf.shared.parsing import format_api_date, parse_amount, parse_date
from btcperf.shared.throttle import RequestThrottler, ThrottleDetector

__all__ = [
    "parse_amount",
    "parse_date",
    "format_api_date",
    "RequestThrottler",
    "ThrottleDetector",
]
