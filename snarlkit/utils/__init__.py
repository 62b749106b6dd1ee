"""
Utilities module for SnarlKit.

Shared sequence helpers used by the graph model and traversal finders.
"""

from .sequence_utils import reverse_complement, oriented_sequence

__all__ = ["reverse_complement", "oriented_sequence"]
