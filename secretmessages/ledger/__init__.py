"""
Ledger Module

Contains the direct-write path: admin gate, flag codec, the authenticated
address registry, and the message store that shares its map root.
"""
