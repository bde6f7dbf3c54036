"""
Balance Kernel - historical balance reconstruction for a chain indexer.

A read-only layer over an append-only event log with:
- Lossless 64/128-bit numeric conversion
- Backward reconstruction of fungible-token balance trails
- Native coin history projection (available + staked)
- Timestamp-bounded pagination
"""

__version__ = "0.1.0"
