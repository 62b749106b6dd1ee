#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Path Index — positional index of the primary reference path.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from typing import Dict, List, Set, Tuple
import logging

from .data_structures import VariationGraph, NodeTraversal, Edge, GraphError

logger = logging.getLogger(__name__)


class PathIndex:
    """
    Ordered index of one embedded path.

    Records, for every node on the path, its base-pair offset, the
    orientation it is visited in and its rank among the path steps. A node
    visited more than once is indexed at its first visit.
    """

    def __init__(self, graph: VariationGraph, path_name: str):
        """
        Index a named path of the graph.

        Args:
            graph: Graph holding the path
            path_name: Name of the embedded path to index

        Raises:
            GraphError: If the graph has no such path
        """
        if path_name not in graph.paths:
            raise GraphError(f"No path named {path_name!r} to index")

        self.path_name = path_name
        self.steps: List[NodeTraversal] = list(graph.paths[path_name].steps)
        self.by_id: Dict[int, Tuple[int, bool]] = {}
        self.ranks: Dict[int, int] = {}
        self._edge_keys: Set = set()

        offset = 0
        for rank, step in enumerate(self.steps):
            if step.node_id in self.by_id:
                logger.warning(
                    f"Path {path_name} revisits node {step.node_id}; indexing first visit only"
                )
            else:
                self.by_id[step.node_id] = (offset, step.backward)
                self.ranks[step.node_id] = rank
            offset += graph.node_length(step.node_id)

        for left, right in zip(self.steps, self.steps[1:]):
            edge = graph.get_edge(left, right)
            if edge is None:
                raise GraphError(f"Path {path_name} steps {left} -> {right} without an edge")
            self._edge_keys.add(edge.key)

        self.sequence = graph.walk_sequence(self.steps)
        logger.debug(f"Indexed path {path_name}: {len(self.steps)} steps, {offset} bp")

    def contains(self, node_id: int) -> bool:
        """Is the node on the indexed path?"""
        return node_id in self.by_id

    def __contains__(self, node_id: int) -> bool:
        return self.contains(node_id)

    def position(self, node_id: int) -> int:
        """Base-pair offset of the node's first base along the path."""
        return self.by_id[node_id][0]

    def orientation(self, node_id: int) -> bool:
        """True if the path visits the node backward."""
        return self.by_id[node_id][1]

    def rank(self, node_id: int) -> int:
        return self.ranks[node_id]

    def traversal_of(self, node_id: int) -> NodeTraversal:
        """The node as the path visits it."""
        return NodeTraversal(node_id, self.orientation(node_id))

    def edge_on_path(self, edge: Edge) -> bool:
        """Is the edge crossed by the path between two consecutive steps?"""
        return edge.key in self._edge_keys

    def walk(self, start_node_id: int, end_node_id: int) -> List[NodeTraversal]:
        """
        Path steps from one node to another, both included.

        Raises:
            ValueError: If the end node comes before the start node
        """
        first = self.rank(start_node_id)
        last = self.rank(end_node_id)
        if last < first:
            raise ValueError(
                f"Node {end_node_id} precedes node {start_node_id} on path {self.path_name}"
            )
        return self.steps[first:last + 1]

    def __len__(self) -> int:
        return len(self.steps)

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
