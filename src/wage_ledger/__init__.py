"""Worker advance ledger and attendance-based compensation engine.

This package contains:
- Ledger operations (append-only per-worker advance ledger)
- Attendance capture and period aggregation
- Bonus and salary settlement drafts
- Settlement history snapshots
"""

__version__ = "0.1.0"
