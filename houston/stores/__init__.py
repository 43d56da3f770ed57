"""
Stores for workspace entities.

Each module reads and writes one kind of workspace file. Writes are
atomic, stamp generated_by, and record a change type on the caller's
MutationTracker.
"""
