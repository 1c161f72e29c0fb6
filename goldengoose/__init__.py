"""
Golden Goose Ledger - Source Package

A household financial-literacy ledger that keeps money in three buckets
(the interest-bearing reserve "goose", goal-oriented savings "dreams" and the
discretionary "pocket") plus user-defined accounts, mirrored between a local
store and a remote store.

DESIGN PRINCIPLES:
1. Every mutation produces a new snapshot (nothing is edited in place)
2. Money is conserved across a deposit split
3. The local store is always the source of truth when the remote is unreachable
4. Nothing in the core is fatal
5. Storage layers are swappable
"""

__version__ = "1.0.0"
__author__ = "Golden Goose Team"
