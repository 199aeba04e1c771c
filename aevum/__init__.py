"""Core data model for a useful-work blockchain: hashing, compute tasks, proof of history, escrow, task markets, UTXOs, blocks and wire encoding."""

__version__ = "0.1.0"