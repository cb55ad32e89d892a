"""
Secret Messages Ledger

Authenticated, capacity-bounded address registry and message store, plus a
batched reduction engine over an append-only log of message validity
outcomes.
"""

__version__ = "0.1.0"
