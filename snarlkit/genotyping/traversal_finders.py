#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Traversal Finders — strategies for enumerating candidate walks through a site.

Five strategies share the TraversalFinder interface:
1. ExhaustiveTraversalFinder - every simple walk (acyclic sites)
2. ReadRestrictedTraversalFinder - walks recurring in reads or named paths
3. PathBasedTraversalFinder - walks taken by embedded named paths
4. TrivialTraversalFinder - first walk found by depth-first search (leaf sites)
5. RepresentativeTraversalFinder - reference-anchored bubble search covering
   every supported node and edge

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque, defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple
import logging

from snarlkit.graph_core.data_structures import (
    Alignment, Edge, GraphError, NodeTraversal, VariationGraph, reverse_walk,
)
from snarlkit.graph_core.augmented_graph import AugmentedGraph
from snarlkit.graph_core.path_index import PathIndex
from snarlkit.graph_core.snarls import Snarl, SnarlManager, SnarlTraversal
from snarlkit.graph_core.support import Support, support_min

logger = logging.getLogger(__name__)

# (length in bp, walk) pairs produced by the bubble search
BfsResult = Tuple[int, List[NodeTraversal]]


class TraversalFinder(ABC):
    """
    Strategy for finding traversals of (nested) sites.

    An empty result is not an error: it means this strategy has no
    informative traversal for the site.
    """

    @abstractmethod
    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        """Return candidate traversals of the site."""
        pass


# ============================================================================
# Exhaustive and trivial depth-first searches
# ============================================================================

class ExhaustiveTraversalFinder(TraversalFinder):
    """
    Enumerates every simple walk from the start of a site to its end.

    Only valid for acyclic sites; on cyclic input the set of walks returned
    is not meaningful.
    """

    def __init__(self, graph: VariationGraph, snarl_manager: SnarlManager):
        self.graph = graph
        self.snarl_manager = snarl_manager

    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        traversals: List[SnarlTraversal] = []

        # None on the stack marks the point to retract the walk by one step
        stack: List[Optional[NodeTraversal]] = [site.start]
        walk: List[NodeTraversal] = []
        on_walk: Set[int] = set()

        while stack:
            here = stack.pop()
            if here is None:
                on_walk.discard(walk.pop().node_id)
                continue

            if here == site.end:
                traversals.append(SnarlTraversal(snarl=site, visits=tuple(walk + [here])))
                continue

            walk.append(here)
            on_walk.add(here.node_id)
            stack.append(None)
            self._stack_up_valid_walks(site, here, on_walk, stack)

        logger.debug(f"Exhaustive search found {len(traversals)} traversals of {site}")
        return traversals

    def _stack_up_valid_walks(
        self,
        site: Snarl,
        walk_head: NodeTraversal,
        on_walk: Set[int],
        stack: List[Optional[NodeTraversal]]
    ):
        # Reversed so that lower edge ids are explored first
        for there in reversed(self.graph.nodes_next(walk_head)):
            if there.node_id in on_walk:
                continue
            if there.node_id == site.end.node_id and there != site.end:
                continue
            stack.append(there)


class TrivialTraversalFinder(TraversalFinder):
    """
    Finds one traversal through a leaf site by depth-first search.

    Only meaningful for sites without children, and not guaranteed to find
    every traversal.
    """

    def __init__(self, graph: VariationGraph):
        self.graph = graph

    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        came_from: Dict[NodeTraversal, Optional[NodeTraversal]] = {site.start: None}
        stack = [site.start]

        while stack:
            here = stack.pop()
            if here == site.end:
                visits = []
                step: Optional[NodeTraversal] = here
                while step is not None:
                    visits.append(step)
                    step = came_from[step]
                return [SnarlTraversal(snarl=site, visits=tuple(reversed(visits)))]

            for there in reversed(self.graph.nodes_next(here)):
                if there in came_from or there.node_id == site.start.node_id:
                    continue
                if there.node_id == site.end.node_id and there != site.end:
                    continue
                came_from[there] = here
                stack.append(there)

        return []


# ============================================================================
# Path-driven finders
# ============================================================================

def _walk_into_site(
    steps: List[NodeTraversal],
    rank: int,
    site: Snarl,
    max_steps: int,
    contents: Optional[Set[int]] = None
) -> Optional[List[NodeTraversal]]:
    """
    Follow a path from the step at `rank` (a visit to the site's start node)
    until it reads out of the site's end.

    The path is read backward when it visits the start node in the
    opposite orientation. Returns None if the walk leaves the site contents,
    runs off the path, or exceeds max_steps.
    """
    first = steps[rank]
    if first == site.start:
        direction = 1
    elif first == site.start.reverse():
        direction = -1
    else:
        return None

    visits: List[NodeTraversal] = []
    index = rank
    for _ in range(max_steps):
        if not 0 <= index < len(steps):
            return None
        visit = steps[index] if direction > 0 else steps[index].reverse()
        visits.append(visit)
        if visit == site.end:
            return visits
        if contents is not None and visit.node_id not in contents:
            return None
        if len(visits) > 1 and visit.node_id == site.start.node_id:
            return None
        index += direction
    return None


class ReadRestrictedTraversalFinder(TraversalFinder):
    """
    Emits walks through a site that are actually taken by named paths or by
    reads.

    Walks are deduplicated by the sequence they spell. A walk supported only
    by reads must be seen in at least `min_recurrence` distinct reads; a walk
    taken by any embedded named path is always emitted.
    """

    def __init__(
        self,
        graph: VariationGraph,
        snarl_manager: SnarlManager,
        reads_by_name: Mapping[str, Alignment],
        min_recurrence: int = 2,
        max_path_search_steps: int = 100
    ):
        """
        Args:
            graph: Graph holding embedded paths (reads may be embedded too)
            snarl_manager: Manager of the sites searched
            reads_by_name: Reads, keyed by name; a path with a read's name is a read
            min_recurrence: Distinct reads needed before a read-only walk counts
            max_path_search_steps: Most node visits followed per candidate walk
        """
        if min_recurrence < 1:
            raise ValueError(f"min_recurrence must be >= 1, got {min_recurrence}")
        if max_path_search_steps < 1:
            raise ValueError(f"max_path_search_steps must be >= 1, got {max_path_search_steps}")
        self.graph = graph
        self.snarl_manager = snarl_manager
        self.reads_by_name = reads_by_name
        self.min_recurrence = min_recurrence
        self.max_path_search_steps = max_path_search_steps

    def _visits_to_start(self, site: Snarl) -> Iterator[Tuple[str, List[NodeTraversal], int]]:
        """(name, steps, rank) for each visit of a path or read to the start node."""
        start_id = site.start.node_id
        for name, rank in self.graph.paths_through(start_id):
            yield name, self.graph.paths[name].steps, rank
        for name in sorted(self.reads_by_name):
            if name in self.graph.paths:
                continue
            steps = self.reads_by_name[name].path
            for rank, step in enumerate(steps):
                if step.node_id == start_id:
                    yield name, steps, rank

    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        contents, _ = self.snarl_manager.deep_contents(site, self.graph, include_boundaries=True)

        walks: Dict[str, SnarlTraversal] = {}
        read_support: Dict[str, Set[str]] = defaultdict(set)
        named: Set[str] = set()

        for name, steps, rank in self._visits_to_start(site):
            visits = _walk_into_site(steps, rank, site, self.max_path_search_steps, contents)
            if visits is None:
                continue
            sequence = self.graph.walk_sequence(visits)
            walks.setdefault(sequence, SnarlTraversal(snarl=site, visits=tuple(visits)))
            if name in self.reads_by_name:
                read_support[sequence].add(name)
            else:
                named.add(sequence)

        traversals = [
            traversal for sequence, traversal in walks.items()
            if sequence in named or len(read_support[sequence]) >= self.min_recurrence
        ]
        logger.debug(
            f"Site {site}: {len(walks)} distinct walks, {len(traversals)} pass recurrence"
        )
        return traversals


class PathBasedTraversalFinder(TraversalFinder):
    """
    Takes traversals straight from the embedded named paths that cross a
    site, with no read involvement.
    """

    def __init__(self, graph: VariationGraph, exclude_paths: Optional[Iterable[str]] = None):
        """
        Args:
            graph: Graph holding the named paths
            exclude_paths: Path names to ignore (e.g. embedded reads)
        """
        self.graph = graph
        self.exclude_paths = set(exclude_paths or ())

    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        seen: Set[Tuple[NodeTraversal, ...]] = set()
        traversals: List[SnarlTraversal] = []

        for name, rank in sorted(self.graph.paths_through(site.start.node_id)):
            if name in self.exclude_paths:
                continue
            steps = self.graph.paths[name].steps
            visits = _walk_into_site(steps, rank, site, max_steps=len(steps))
            if visits is None:
                continue
            key = tuple(visits)
            if key not in seen:
                seen.add(key)
                traversals.append(SnarlTraversal(snarl=site, visits=key))

        return traversals


# ============================================================================
# Representative (bubble-finding) search
# ============================================================================

@dataclass
class SiteSearch:
    """
    Outcome of a representative search over one site.

    Attributes:
        traversals: Traversals paired with the minimum support along the
            bubble that produced them, reference traversal first
        unrepresented: Labels such as ``node 3`` or ``edge 3->4`` for
            supported elements no bubble could join back to the reference
    """
    traversals: List[Tuple[SnarlTraversal, Support]] = field(default_factory=list)
    unrepresented: List[str] = field(default_factory=list)


class RepresentativeTraversalFinder(TraversalFinder):
    """
    Emits traversals that together represent every supported node and edge
    of a site.

    Each supported element off the reference is joined back to the indexed
    reference path by breadth-first searches to the left and to the right,
    and the shortest consistently oriented combination becomes a bubble.
    Bubbles are spliced into the reference walk through the site to make
    full traversals. The reference traversal always comes first.
    """

    def __init__(
        self,
        augmented: AugmentedGraph,
        snarl_manager: SnarlManager,
        index: PathIndex,
        max_depth: int = 10,
        max_bubble_paths: int = 100,
        verbose: bool = False
    ):
        """
        Args:
            augmented: Annotated graph to search
            snarl_manager: Manager of the sites searched
            index: Index of the primary path that scaffolds every traversal
            max_depth: Longest partial walk (in nodes) a search will extend
            max_bubble_paths: Most search intermediates per breadth-first search
            verbose: Report per-element search detail at INFO level
        """
        if max_depth < 1 or max_bubble_paths < 1:
            raise ValueError(
                f"max_depth and max_bubble_paths must be >= 1, got {max_depth}, {max_bubble_paths}"
            )
        self.augmented = augmented
        self.snarl_manager = snarl_manager
        self.index = index
        self.max_depth = max_depth
        self.max_bubble_paths = max_bubble_paths
        self.verbose = verbose

    @property
    def graph(self) -> VariationGraph:
        return self.augmented.graph

    def _log(self, message: str):
        logger.log(logging.INFO if self.verbose else logging.DEBUG, message)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def find_traversals(self, site: Snarl) -> List[SnarlTraversal]:
        """
        Find traversals to cover the supported nodes and edges of the site.
        Always emits the primary path traversal first, if applicable.
        """
        return [traversal for traversal, _ in self.find_supported_traversals(site)]

    def find_supported_traversals(self, site: Snarl) -> List[Tuple[SnarlTraversal, Support]]:
        """
        Traversals paired with the minimum support along the bubble that
        produced them (for the reference traversal, along the whole walk).
        """
        return self.search_site(site).traversals

    def search_site(self, site: Snarl) -> SiteSearch:
        """
        Run the representative search over one site.

        Nothing is kept on the finder between calls, so concurrent workers
        may share it.
        """
        start_id, end_id = site.start.node_id, site.end.node_id
        if not (self.index.contains(start_id) and self.index.contains(end_id)):
            logger.warning(f"Site {site} is not on reference path {self.index.path_name}")
            return SiteSearch()

        if self.index.rank(start_id) > self.index.rank(end_id):
            # Work along the reference, then hand back walks in the site's orientation
            found = self._find_supported(site.flipped())
            found.traversals = [(traversal.flipped(), support) for traversal, support in found.traversals]
            return found
        return self._find_supported(site)

    def _find_supported(self, site: Snarl) -> SiteSearch:
        ref_walk = self.index.walk(site.start.node_id, site.end.node_id)
        if ref_walk[0] != site.start or ref_walk[-1] != site.end:
            logger.warning(f"Site {site} boundaries disagree with reference orientation")
            return SiteSearch()

        nodes, edges = self.snarl_manager.deep_contents(site, self.graph, include_boundaries=True)
        ref_ranks = {step.node_id: rank for rank, step in enumerate(ref_walk)}
        alleles: Dict[Tuple[NodeTraversal, ...], Support] = {
            tuple(ref_walk): self.min_support_in_path(ref_walk)
        }
        unrepresented: List[str] = []

        for node_id in sorted(nodes):
            if not self.augmented.is_node_supported(node_id):
                # Don't bother with unsupported nodes
                continue
            if self.index.contains(node_id):
                # Reference nodes are represented by the reference traversal
                continue
            support, bubble = self.find_bubble(node_id=node_id)
            self._add_allele(site, f"node {node_id}", support, bubble, nodes,
                             ref_walk, ref_ranks, alleles, unrepresented)

        for edge_id in sorted(edges):
            edge = self.graph.edges[edge_id]
            if self.augmented.get_edge_support(edge).total == 0:
                continue
            if self.index.edge_on_path(edge):
                continue
            support, bubble = self.find_bubble(edge=edge)
            self._add_allele(site, f"edge {edge.from_id}->{edge.to_id}", support, bubble, nodes,
                             ref_walk, ref_ranks, alleles, unrepresented)

        self._log(
            f"Site {site}: {len(alleles)} traversals, "
            f"{len(unrepresented)} elements without a bubble"
        )
        return SiteSearch(
            traversals=[
                (SnarlTraversal(snarl=site, visits=visits), support)
                for visits, support in alleles.items()
            ],
            unrepresented=unrepresented,
        )

    def _add_allele(
        self,
        site: Snarl,
        label: str,
        support: Support,
        bubble: List[NodeTraversal],
        site_nodes: Set[int],
        ref_walk: List[NodeTraversal],
        ref_ranks: Dict[int, int],
        alleles: Dict[Tuple[NodeTraversal, ...], Support],
        unrepresented: List[str]
    ):
        """Splice a bubble into the reference walk through the site and record it."""
        if not bubble:
            self._log(f"No bubble found for {label} in site {site}")
            unrepresented.append(label)
            return

        first, last = bubble[0].node_id, bubble[-1].node_id
        if (first not in ref_ranks or last not in ref_ranks
                or any(step.node_id not in site_nodes for step in bubble)):
            self._log(f"Bubble for {label} leaves site {site}")
            unrepresented.append(label)
            return

        allele = tuple(ref_walk[:ref_ranks[first]] + bubble + ref_walk[ref_ranks[last] + 1:])
        if allele not in alleles:
            alleles[allele] = support

    # ------------------------------------------------------------------
    # Bubble search
    # ------------------------------------------------------------------

    def find_bubble(
        self,
        node_id: Optional[int] = None,
        edge: Optional[Edge] = None
    ) -> Tuple[Support, List[NodeTraversal]]:
        """
        Find the shortest bubble relative to the reference path through a
        node or an edge.

        Exactly one of node_id and edge must be given. The bubble may not
        visit the same node twice, and its ends must be oriented the same
        way relative to the reference.

        Returns:
            (minimum support over the bubble's nodes and edges, bubble walk),
            with the walk reading forward along the reference and its first
            node before its last. The walk is empty if no bubble exists.
        """
        if (node_id is None) == (edge is None):
            raise ValueError("Exactly one of node_id and edge must be given")

        if edge is not None:
            left_start, right_start = edge.left_traversal, edge.right_traversal
            overlap = 0
        else:
            left_start = right_start = NodeTraversal(node_id)
            overlap = 1

        left_paths = self.bfs_left(left_start)
        right_paths = self.bfs_right(right_start)

        best: Optional[List[NodeTraversal]] = None
        best_length = 0
        for left_length, left_path in left_paths:
            for right_length, right_path in right_paths:
                walk = left_path + right_path[overlap:]
                length = left_length + right_length
                if overlap:
                    length -= self.graph.node_length(node_id)

                oriented = self._orient_along_reference(walk)
                if oriented is None:
                    continue
                if len({step.node_id for step in oriented}) != len(oriented):
                    continue
                if best is None or length < best_length:
                    best, best_length = oriented, length

        if best is None:
            return Support(), []
        return self.min_support_in_path(best), best

    def _orient_along_reference(self, walk: List[NodeTraversal]) -> Optional[List[NodeTraversal]]:
        """
        Read a reference-anchored walk forward along the reference, or
        return None if its ends disagree in orientation or run backward.
        """
        first, last = walk[0], walk[-1]
        first_flipped = first.backward != self.index.orientation(first.node_id)
        last_flipped = last.backward != self.index.orientation(last.node_id)
        if first_flipped != last_flipped:
            return None
        if first_flipped:
            walk = reverse_walk(walk)
        if self.index.position(walk[0].node_id) > self.index.position(walk[-1].node_id):
            return None
        return walk

    def min_support_in_path(self, path: List[NodeTraversal]) -> Support:
        """
        Get the minimum support of all nodes and edges in a walk.

        Raises:
            GraphError: If consecutive steps are not joined by an edge
        """
        if not path:
            return Support()

        minimum = self.augmented.get_node_support(path[0].node_id)
        for here, there in zip(path, path[1:]):
            edge = self.graph.get_edge(here, there)
            if edge is None:
                raise GraphError(f"No edge between {here} and {there}")
            minimum = support_min(minimum, self.augmented.get_edge_support(edge))
            minimum = support_min(minimum, self.augmented.get_node_support(there.node_id))
        return minimum

    def bfs_left(self, traversal: NodeTraversal, stop_if_visited: bool = False) -> List[BfsResult]:
        """
        Breadth-first search left from a node traversal.

        Returns (length, walk) pairs for walks that end at the given
        traversal and start on the indexed reference path, in discovery
        order. Refuses to visit nodes with no support.
        """
        return self._bfs(traversal, stop_if_visited, leftward=True)

    def bfs_right(self, traversal: NodeTraversal, stop_if_visited: bool = False) -> List[BfsResult]:
        """
        Breadth-first search right from a node traversal.

        Returns (length, walk) pairs for walks that start at the given
        traversal and end on the indexed reference path, in discovery order.
        """
        return self._bfs(traversal, stop_if_visited, leftward=False)

    def _bfs(self, traversal: NodeTraversal, stop_if_visited: bool, leftward: bool) -> List[BfsResult]:
        results: List[BfsResult] = []
        found: Set[Tuple[NodeTraversal, ...]] = set()

        to_extend = deque([(traversal,)])
        already_queued = {traversal}
        intermediates = 1

        while to_extend:
            path = to_extend.popleft()
            frontier = path[0] if leftward else path[-1]

            if self.index.contains(frontier.node_id):
                # Reached the reference; don't look for extensions
                if path not in found:
                    found.add(path)
                    results.append((self.graph.walk_length(path), list(path)))
                    if len(results) >= self.max_bubble_paths:
                        break
                continue

            if len(path) > self.max_depth or intermediates >= self.max_bubble_paths:
                continue

            on_path = {step.node_id for step in path}
            neighbours = self.graph.nodes_prev(frontier) if leftward else self.graph.nodes_next(frontier)
            for neighbour in neighbours:
                if not self.augmented.is_node_supported(neighbour.node_id):
                    # Unsupported (or unannotated) nodes are treated as absent
                    continue
                if neighbour.node_id in on_path:
                    continue
                if stop_if_visited and neighbour in already_queued:
                    continue
                to_extend.append((neighbour,) + path if leftward else path + (neighbour,))
                already_queued.add(neighbour)
                intermediates += 1

        return results

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
