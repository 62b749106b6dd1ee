"""
SnarlKit v0.1.0

Graph core: the variation graph, its annotations, the reference path index
and the site hierarchy.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from .data_structures import (
    Alignment,
    Edge,
    GraphError,
    Node,
    NodeTraversal,
    Path,
    VariationGraph,
    build_graph,
    reverse_walk,
)
from .support import Support, support_min, total
from .augmented_graph import AugmentedGraph, ElementCall, Translation
from .path_index import PathIndex
from .snarls import Snarl, SnarlManager, SnarlTraversal
from .snarl_finder_module import CactusUltrabubbleFinder, SnarlFinder

__all__ = [
    "Alignment",
    "Edge",
    "GraphError",
    "Node",
    "NodeTraversal",
    "Path",
    "VariationGraph",
    "build_graph",
    "reverse_walk",
    "Support",
    "support_min",
    "total",
    "AugmentedGraph",
    "ElementCall",
    "Translation",
    "PathIndex",
    "Snarl",
    "SnarlManager",
    "SnarlTraversal",
    "CactusUltrabubbleFinder",
    "SnarlFinder",
]
