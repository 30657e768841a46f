"""Merkle AVL+ tree building blocks: nodes, balancing, hashing, encoding, iteration and key formats."""

__version__ = "0.1.0"