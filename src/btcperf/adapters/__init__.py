"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (price API clients)
- Sources (position input)
- Reporting (result and totals sinks)
"""

__all__ = []
