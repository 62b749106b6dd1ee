#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Augmented Graph — the annotated working copy of the variation graph.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Iterable, Optional, TYPE_CHECKING
import logging

from .data_structures import VariationGraph, Alignment, Edge
from .support import Support

if TYPE_CHECKING:
    from .path_index import PathIndex

logger = logging.getLogger(__name__)


class ElementCall(Enum):
    """How an element of the augmented graph arose."""
    DELETION = 'D'
    REFERENCE = 'R'
    UNCALLED = 'U'
    SUBSTITUTION = 'S'
    INSERTION = 'I'


@dataclass
class Translation:
    """
    Provenance of one augmented node.

    Maps the whole new node (forward strand) onto the piece of the single
    original node it came from (forward strand).
    """
    new_node_id: int
    original_node_id: int
    original_offset: int = 0
    length: int = 0

    def __post_init__(self):
        if self.original_offset < 0 or self.length < 0:
            raise ValueError(
                f"Translation for node {self.new_node_id} has negative interval "
                f"({self.original_offset}, {self.length})"
            )


@dataclass
class AugmentedGraph:
    """
    Variation graph plus per-element annotations.

    Every annotation map is keyed by integer node id or edge id. A missing
    entry means "unknown": support accessors report it as zero support.
    The graph is populated in a single-writer phase and is then read
    concurrently by traversal finders and calculators.
    """
    graph: VariationGraph = field(default_factory=VariationGraph)

    node_calls: Dict[int, ElementCall] = field(default_factory=dict)
    edge_calls: Dict[int, ElementCall] = field(default_factory=dict)

    # Note that only strand totals are kept, not any "other" support.
    node_supports: Dict[int, Support] = field(default_factory=dict)
    edge_supports: Dict[int, Support] = field(default_factory=dict)

    node_likelihoods: Dict[int, float] = field(default_factory=dict)
    edge_likelihoods: Dict[int, float] = field(default_factory=dict)

    translations: List[Translation] = field(default_factory=list)

    def clear(self):
        """Clear all annotations and translations, leaving the graph untouched."""
        self.node_calls.clear()
        self.edge_calls.clear()
        self.node_supports.clear()
        self.edge_supports.clear()
        self.node_likelihoods.clear()
        self.edge_likelihoods.clear()
        self.translations.clear()

    def get_node_support(self, node_id: int) -> Support:
        """Support of a node, zero if unannotated."""
        return self.node_supports.get(node_id, Support())

    def get_edge_support(self, edge: Optional[Edge]) -> Support:
        """Support of an edge, zero if unannotated or absent."""
        if edge is None:
            return Support()
        return self.edge_supports.get(edge.id, Support())

    def is_node_supported(self, node_id: int) -> bool:
        return self.get_node_support(node_id).total > 0

    def load_read_supports(self, reads: Iterable[Alignment], replace: bool = True) -> int:
        """
        Derive node and edge supports from aligned reads.

        Each read adds one unit of support (and its mapping quality) to every
        node and edge it crosses, on the forward strand when it visits the
        element in its stored orientation and on the reverse strand otherwise.
        Edges are forward when crossed in their own direction.

        Args:
            reads: Alignments to count
            replace: Drop existing supports first

        Returns:
            Number of reads that contributed support
        """
        if replace:
            self.node_supports.clear()
            self.edge_supports.clear()

        used = 0
        for read in reads:
            if not read.path:
                continue
            used += 1
            for step in read.path:
                if step.node_id not in self.graph.nodes:
                    logger.warning(f"Read {read.name} visits unknown node {step.node_id}; ignored")
                    continue
                unit = _unit_support(step.backward, read.mapping_quality)
                self.node_supports[step.node_id] = self.get_node_support(step.node_id) + unit
            for left, right in zip(read.path, read.path[1:]):
                edge = self.graph.get_edge(left, right)
                if edge is None:
                    continue
                crossed_backward = edge.left_traversal != left
                unit = _unit_support(crossed_backward, read.mapping_quality)
                self.edge_supports[edge.id] = self.get_edge_support(edge) + unit

        logger.info(
            f"Loaded support from {used} reads onto {len(self.node_supports)} nodes "
            f"and {len(self.edge_supports)} edges"
        )
        return used

    def classify_against_reference(self, index: "PathIndex"):
        """
        Mark elements on the indexed reference path as reference calls.

        Supported elements off the reference are marked as insertions when
        they are nodes and as deletions when they are edges joining two
        reference nodes; everything else is left uncalled.
        """
        for node_id in self.graph.nodes:
            if index.contains(node_id):
                self.node_calls[node_id] = ElementCall.REFERENCE
            elif self.is_node_supported(node_id):
                self.node_calls[node_id] = ElementCall.INSERTION
            else:
                self.node_calls[node_id] = ElementCall.UNCALLED

        for edge in self.graph.edges.values():
            if index.edge_on_path(edge):
                self.edge_calls[edge.id] = ElementCall.REFERENCE
            elif (self.get_edge_support(edge).total > 0
                  and index.contains(edge.from_id) and index.contains(edge.to_id)):
                self.edge_calls[edge.id] = ElementCall.DELETION
            else:
                self.edge_calls[edge.id] = ElementCall.UNCALLED


def _unit_support(backward: bool, mapping_quality: int) -> Support:
    """One read's worth of support on the given strand."""
    if backward:
        return Support(reverse=1, quality=mapping_quality)
    return Support(forward=1, quality=mapping_quality)

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
