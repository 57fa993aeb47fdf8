"""
tokenvest - Token Vesting Accounting Engine

Schedules the gradual release of a fixed quantity of a fungible asset to a
beneficiary over time, with a cliff, slice-based release granularity and
optional early revocation.

Main Components:
- Contracts: vesting controller, schedule store, vesting math, ledger, access gate
- Core: exceptions, checked arithmetic, configuration, logging
- Database: SQLite-backed state persistence
- CLI: command-line front end for local deployments
"""

__version__ = "0.1.0"
__author__ = "tokenvest Development Team"

__all__ = []
