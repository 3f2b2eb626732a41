"""Storage and versioning layer.

This package persists DMP records in a sorted key-value table, splits
them into core and extension documents, and keeps immutable snapshots.
"""
