"""
Core modules for gnfd-cmd quota commands.

This package contains quota pricing, quota purchase orchestration,
quota ledger reporting and the cancellation scope they share.
"""
