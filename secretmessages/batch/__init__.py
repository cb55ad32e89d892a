"""
Batch Module

Contains the log path: message validation, the append-only action log, and
the resumable reducer that folds it into a running aggregate.
"""
