#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Variation Graph Data Structures

This module holds the in-memory graph representation that every genotyping
stage reads from:
1. Nodes carrying sequence, and oriented node traversals
2. Edges joining node sides (bidirected, so inversions are expressible)
3. Embedded named paths and pre-aligned reads (Alignments)

Nodes and edges are addressed by stable integer identifiers, so annotation
maps built on top of the graph stay valid independently of object identity.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple, Optional, Iterable
from collections import defaultdict
import logging

from snarlkit.utils.sequence_utils import oriented_sequence

logger = logging.getLogger(__name__)

# A node side: (node_id, is_end). The start side is where a forward read enters.
Side = Tuple[int, bool]


class GraphError(Exception):
    """Raised when a graph lookup or mutation refers to missing elements."""
    pass


# ============================================================================
# Part 1: Nodes and Traversals
# ============================================================================

@dataclass
class Node:
    """A sequence-bearing node of the variation graph."""
    id: int
    sequence: str

    @property
    def length(self) -> int:
        """Length of sequence in bases."""
        return len(self.sequence)


@dataclass(frozen=True, order=True)
class NodeTraversal:
    """
    A node visited in a particular direction.

    The unit of path search: `backward=True` means the node is read as the
    reverse complement of its stored sequence.
    """
    node_id: int
    backward: bool = False

    def reverse(self) -> "NodeTraversal":
        """The same node visited in the opposite direction."""
        return NodeTraversal(self.node_id, not self.backward)

    @property
    def right_side(self) -> Side:
        """Side of the node we leave through when moving forward."""
        return (self.node_id, not self.backward)

    @property
    def left_side(self) -> Side:
        """Side of the node we arrive through when moving forward."""
        return (self.node_id, self.backward)

    def __str__(self) -> str:
        return f"{self.node_id}{'-' if self.backward else '+'}"


def reverse_walk(walk: Iterable[NodeTraversal]) -> List[NodeTraversal]:
    """Read an oriented walk from the other strand."""
    return [step.reverse() for step in reversed(list(walk))]


# ============================================================================
# Part 2: Edges
# ============================================================================

@dataclass
class Edge:
    """
    Edge in the bidirected variation graph.

    Joins the end of `from_id` (or its start, if `from_start`) to the start of
    `to_id` (or its end, if `to_end`).
    """
    id: int
    from_id: int
    to_id: int
    from_start: bool = False
    to_end: bool = False

    @property
    def sides(self) -> Tuple[Side, Side]:
        """The two node sides this edge attaches to."""
        return (self.from_id, not self.from_start), (self.to_id, self.to_end)

    @property
    def key(self) -> Tuple[Side, Side]:
        """Orientation-independent identity of the edge."""
        first, second = self.sides
        return (first, second) if first <= second else (second, first)

    @property
    def left_traversal(self) -> NodeTraversal:
        """The node we leave when crossing the edge in its own direction."""
        return NodeTraversal(self.from_id, self.from_start)

    @property
    def right_traversal(self) -> NodeTraversal:
        """The node we enter when crossing the edge in its own direction."""
        return NodeTraversal(self.to_id, self.to_end)

    def __hash__(self):
        """Make edges hashable for set operations."""
        return hash(self.key)

    def __eq__(self, other):
        """Compare edges by the sides they join."""
        if not isinstance(other, Edge):
            return False
        return self.key == other.key


# ============================================================================
# Part 3: Paths and Reads
# ============================================================================

@dataclass
class Path:
    """A named walk embedded in the graph (reference, haplotype or read)."""
    name: str
    steps: List[NodeTraversal] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)


@dataclass
class Alignment:
    """
    A sequencing read already mapped onto the graph.

    `path` is the ordered list of node visits the read makes. Reads are
    immutable input to the consistency and support calculators.
    """
    name: str
    path: List[NodeTraversal]
    sequence: str = ""
    mapping_quality: int = 60

    @property
    def node_ids(self) -> List[int]:
        """Node ids visited by the read, in order."""
        return [step.node_id for step in self.path]


# ============================================================================
# Part 4: Variation Graph
# ============================================================================

@dataclass
class VariationGraph:
    """
    Bidirected sequence graph with embedded paths.

    Uses per-side adjacency sets for traversal in either orientation.
    """
    nodes: Dict[int, Node] = field(default_factory=dict)
    edges: Dict[int, Edge] = field(default_factory=dict)
    paths: Dict[str, Path] = field(default_factory=dict)
    side_edges: Dict[Side, Set[int]] = field(default_factory=lambda: defaultdict(set))
    edge_index: Dict[Tuple[Side, Side], int] = field(default_factory=dict)
    node_paths: Dict[int, List[Tuple[str, int]]] = field(default_factory=lambda: defaultdict(list))
    next_edge_id: int = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, node: Node) -> Node:
        """Add a node to the graph."""
        if node.id in self.nodes:
            raise GraphError(f"Node {node.id} already exists")
        self.nodes[node.id] = node
        return node

    def create_node(self, sequence: str, node_id: Optional[int] = None) -> Node:
        """Create and add a node, picking the next free id when none is given."""
        if node_id is None:
            node_id = max(self.nodes, default=0) + 1
        return self.add_node(Node(id=node_id, sequence=sequence))

    def add_edge(self, edge: Edge) -> Edge:
        """
        Add an edge to the graph.

        Adding an edge that joins the same two sides as an existing edge
        returns the existing edge instead.
        """
        for node_id in (edge.from_id, edge.to_id):
            if node_id not in self.nodes:
                raise GraphError(f"Edge {edge.id} refers to missing node {node_id}")

        existing = self.edge_index.get(edge.key)
        if existing is not None:
            return self.edges[existing]
        if edge.id in self.edges:
            raise GraphError(f"Edge id {edge.id} already in use")

        self.edges[edge.id] = edge
        self.edge_index[edge.key] = edge.id
        for side in edge.sides:
            self.side_edges[side].add(edge.id)
        self.next_edge_id = max(self.next_edge_id, edge.id + 1)
        return edge

    def create_edge(
        self,
        from_id: int,
        to_id: int,
        from_start: bool = False,
        to_end: bool = False
    ) -> Edge:
        """Create and add an edge with the next free edge id."""
        return self.add_edge(Edge(
            id=self.next_edge_id,
            from_id=from_id,
            to_id=to_id,
            from_start=from_start,
            to_end=to_end,
        ))

    def add_path(self, name: str, steps: Iterable[NodeTraversal]) -> Path:
        """Embed a named path, indexing every node visit it makes."""
        if name in self.paths:
            raise GraphError(f"Path {name} already exists")
        path = Path(name=name, steps=list(steps))
        for rank, step in enumerate(path.steps):
            if step.node_id not in self.nodes:
                raise GraphError(f"Path {name} visits missing node {step.node_id}")
            self.node_paths[step.node_id].append((name, rank))
        self.paths[name] = path
        return path

    def embed_alignment(self, alignment: Alignment) -> Path:
        """Embed a read's walk as a named path under the read's name."""
        return self.add_path(alignment.name, alignment.path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_node(self, node_id: int) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: int) -> Node:
        """Look up a node, raising GraphError if absent."""
        try:
            return self.nodes[node_id]
        except KeyError:
            raise GraphError(f"No node {node_id} in graph") from None

    def node_length(self, node_id: int) -> int:
        return self.get_node(node_id).length

    def get_edge(self, left: NodeTraversal, right: NodeTraversal) -> Optional[Edge]:
        """
        Find the edge that lets a walk step from `left` to `right`.

        Returns None if the two traversals are not adjacent.
        """
        first, second = left.right_side, right.left_side
        key = (first, second) if first <= second else (second, first)
        edge_id = self.edge_index.get(key)
        return self.edges[edge_id] if edge_id is not None else None

    def has_edge(self, left: NodeTraversal, right: NodeTraversal) -> bool:
        return self.get_edge(left, right) is not None

    def edges_of(self, node_id: int) -> List[Edge]:
        """All edges attached to either side of a node, ordered by id."""
        edge_ids = self.side_edges.get((node_id, False), set()) | self.side_edges.get((node_id, True), set())
        return [self.edges[eid] for eid in sorted(edge_ids)]

    def adjacent_sides(self, side: Side) -> List[Side]:
        """Sides reachable by crossing one edge from the given side."""
        reached = []
        for edge_id in sorted(self.side_edges.get(side, ())):
            first, second = self.edges[edge_id].sides
            reached.append(second if first == side else first)
        return reached

    def nodes_next(self, traversal: NodeTraversal) -> List[NodeTraversal]:
        """Traversals that can follow this one on a walk."""
        return [NodeTraversal(node_id, is_end) for node_id, is_end in self.adjacent_sides(traversal.right_side)]

    def nodes_prev(self, traversal: NodeTraversal) -> List[NodeTraversal]:
        """Traversals that can precede this one on a walk."""
        return [NodeTraversal(node_id, not is_end) for node_id, is_end in self.adjacent_sides(traversal.left_side)]

    def paths_through(self, node_id: int) -> List[Tuple[str, int]]:
        """(path name, rank) for every path visit to a node."""
        return list(self.node_paths.get(node_id, ()))

    def walk_sequence(self, walk: Iterable[NodeTraversal]) -> str:
        """Spell the sequence of an oriented walk."""
        return ''.join(
            oriented_sequence(self.get_node(step.node_id).sequence, step.backward)
            for step in walk
        )

    def walk_length(self, walk: Iterable[NodeTraversal]) -> int:
        """Length of an oriented walk in base pairs."""
        return sum(self.node_length(step.node_id) for step in walk)

    def is_valid_walk(self, walk: List[NodeTraversal]) -> bool:
        """Check that every consecutive pair of steps is joined by an edge."""
        return all(self.has_edge(a, b) for a, b in zip(walk, walk[1:]))

    def copy(self) -> "VariationGraph":
        """Independent copy of nodes, edges and paths."""
        duplicate = VariationGraph()
        for node in self.nodes.values():
            duplicate.add_node(Node(id=node.id, sequence=node.sequence))
        for edge in self.edges.values():
            duplicate.add_edge(Edge(edge.id, edge.from_id, edge.to_id, edge.from_start, edge.to_end))
        for path in self.paths.values():
            duplicate.add_path(path.name, path.steps)
        return duplicate


def build_graph(
    sequences: Dict[int, str],
    links: Iterable[Tuple],
    paths: Optional[Dict[str, List[NodeTraversal]]] = None
) -> VariationGraph:
    """
    Convenience constructor.

    Args:
        sequences: node id -> sequence
        links: (from_id, to_id) or (from_id, to_id, from_start, to_end) tuples
        paths: optional named paths to embed

    Returns:
        VariationGraph with edges numbered in the order given
    """
    graph = VariationGraph()
    for node_id in sorted(sequences):
        graph.add_node(Node(id=node_id, sequence=sequences[node_id]))
    for link in links:
        graph.create_edge(*link)
    for name, steps in (paths or {}).items():
        graph.add_path(name, steps)
    logger.debug(f"Built graph with {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
