"""State store adapters.

Each admission algorithm reads and writes its per-key state through its own
store contract, so the in-memory stores can later be replaced by a shared
backend without touching the algorithms.
"""
