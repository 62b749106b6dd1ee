#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Snarls — nested sites of the variation graph, their traversals, and the
manager that owns the site hierarchy.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple, TypeVar
import logging

from .data_structures import NodeTraversal, VariationGraph, reverse_walk

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Sites and Traversals
# ============================================================================

@dataclass(frozen=True)
class Snarl:
    """
    A bi-connected site bounded by two oriented nodes.

    `start` reads into the site and `end` reads out of it. The pair of
    boundaries identifies the snarl.
    """
    start: NodeTraversal
    end: NodeTraversal

    def __post_init__(self):
        if self.start == self.end:
            raise ValueError(f"Snarl boundaries coincide: {self.start}")

    @property
    def key(self) -> Tuple[NodeTraversal, NodeTraversal]:
        return (self.start, self.end)

    def flipped(self) -> "Snarl":
        """The same site read from the other strand."""
        return Snarl(start=self.end.reverse(), end=self.start.reverse())

    def __str__(self) -> str:
        return f"{self.start} -> {self.end}"


@dataclass(frozen=True)
class SnarlTraversal:
    """
    One oriented walk through a snarl, from its start boundary to its end
    boundary, both included.
    """
    snarl: Snarl
    visits: Tuple[NodeTraversal, ...]

    def __post_init__(self):
        # Accept lists for convenience but store an immutable tuple
        object.__setattr__(self, 'visits', tuple(self.visits))

    @property
    def node_ids(self) -> List[int]:
        return [visit.node_id for visit in self.visits]

    def __len__(self) -> int:
        return len(self.visits)

    def __iter__(self) -> Iterator[NodeTraversal]:
        return iter(self.visits)

    def spans_snarl(self) -> bool:
        """Do the first and last visits match the snarl boundaries?"""
        return (len(self.visits) >= 2
                and self.visits[0] == self.snarl.start
                and self.visits[-1] == self.snarl.end)

    def flipped(self) -> "SnarlTraversal":
        """The same walk through the flipped snarl."""
        return SnarlTraversal(snarl=self.snarl.flipped(), visits=tuple(reverse_walk(self.visits)))

    def __str__(self) -> str:
        return ",".join(str(visit) for visit in self.visits)


# ============================================================================
# Snarl Manager
# ============================================================================

class SnarlManager:
    """
    Owns the forest of nested snarls.

    Read-only once built, so it may be shared by concurrent per-site
    workers.
    """

    def __init__(self):
        self._parents: Dict[Snarl, Optional[Snarl]] = {}
        self._children: Dict[Snarl, List[Snarl]] = {}
        self._roots: List[Snarl] = []
        # Traversals that read into a snarl, from either side
        self._entries: Dict[NodeTraversal, Snarl] = {}
        # Sites holding a cycle or a walk that turns back through a boundary
        self._cyclic: Set[Snarl] = set()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_snarl(
        self,
        snarl: Snarl,
        parent: Optional[Snarl] = None,
        ultrabubble: bool = True
    ) -> Snarl:
        """
        Register a snarl under an already registered parent (or as a root).

        Args:
            snarl: Site to add
            parent: Enclosing site, or None for a top-level site
            ultrabubble: False when the site contains a cycle or a reversing walk
        """
        if snarl in self._parents:
            raise ValueError(f"Snarl {snarl} already registered")
        if parent is not None and parent not in self._parents:
            raise ValueError(f"Parent snarl {parent} is not registered")

        self._parents[snarl] = parent
        self._children[snarl] = []
        if not ultrabubble:
            self._cyclic.add(snarl)
        if parent is None:
            self._roots.append(snarl)
        else:
            self._children[parent].append(snarl)
        self._entries[snarl.start] = snarl
        self._entries[snarl.end.reverse()] = snarl
        return snarl

    def flip(self, snarl: Snarl) -> Snarl:
        """Replace a snarl with its flipped orientation, keeping its place in the tree."""
        flipped = snarl.flipped()
        parent = self._parents.pop(snarl)
        children = self._children.pop(snarl)

        self._parents[flipped] = parent
        self._children[flipped] = children
        for child in children:
            self._parents[child] = flipped
        siblings = self._roots if parent is None else self._children[parent]
        siblings[siblings.index(snarl)] = flipped
        if snarl in self._cyclic:
            self._cyclic.discard(snarl)
            self._cyclic.add(flipped)

        del self._entries[snarl.start]
        del self._entries[snarl.end.reverse()]
        self._entries[flipped.start] = flipped
        self._entries[flipped.end.reverse()] = flipped
        return flipped

    # ------------------------------------------------------------------
    # Hierarchy queries
    # ------------------------------------------------------------------

    def top_level_snarls(self) -> List[Snarl]:
        return list(self._roots)

    def children_of(self, snarl: Snarl) -> List[Snarl]:
        return list(self._children[snarl])

    def parent_of(self, snarl: Snarl) -> Optional[Snarl]:
        return self._parents[snarl]

    def is_leaf(self, snarl: Snarl) -> bool:
        return not self._children[snarl]

    def is_root(self, snarl: Snarl) -> bool:
        return self._parents[snarl] is None

    def is_ultrabubble(self, snarl: Snarl) -> bool:
        """Is the site acyclic, with every walk from start running forward to end?"""
        if snarl not in self._parents:
            raise ValueError(f"Snarl {snarl} is not registered")
        return snarl not in self._cyclic

    def depth_of(self, snarl: Snarl) -> int:
        """Number of ancestors above a snarl."""
        depth = 0
        parent = self._parents[snarl]
        while parent is not None:
            depth += 1
            parent = self._parents[parent]
        return depth

    def into_which_snarl(self, node_id: int, backward: bool) -> Optional[Snarl]:
        """The snarl that this oriented node reads into through a boundary, if any."""
        return self._entries.get(NodeTraversal(node_id, backward))

    def snarls(self) -> List[Snarl]:
        """All snarls in preorder."""
        ordered: List[Snarl] = []
        self.for_each_snarl_preorder(ordered.append)
        return ordered

    def __contains__(self, snarl: Snarl) -> bool:
        return snarl in self._parents

    def __len__(self) -> int:
        return len(self._parents)

    def __iter__(self) -> Iterator[Snarl]:
        return iter(self.snarls())

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def for_each_snarl_preorder(self, fn: Callable[[Snarl], None]):
        """Call fn on every snarl, parents before children."""
        stack = list(reversed(self._roots))
        while stack:
            snarl = stack.pop()
            fn(snarl)
            stack.extend(reversed(self._children[snarl]))

    def for_each_top_level_snarl_parallel(
        self,
        fn: Callable[[Snarl], T],
        threads: int = 1
    ) -> List[T]:
        """
        Run fn on every top-level snarl, forking across worker threads.

        Results come back in top-level order. An exception from any worker
        is re-raised after it is logged.
        """
        roots = self.top_level_snarls()
        if threads <= 1 or len(roots) <= 1:
            return [fn(snarl) for snarl in roots]

        results: List[Optional[T]] = [None] * len(roots)
        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = {
                executor.submit(fn, snarl): index
                for index, snarl in enumerate(roots)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.error(f"Failed on site {roots[index]}: {e}")
                    raise
        return results

    # ------------------------------------------------------------------
    # Contents
    # ------------------------------------------------------------------

    def deep_contents(
        self,
        snarl: Snarl,
        graph: VariationGraph,
        include_boundaries: bool = True
    ) -> Tuple[Set[int], Set[int]]:
        """Node ids and edge ids inside a snarl, including all child snarls."""
        return self._contents(snarl, graph, include_boundaries, descend=True)

    def shallow_contents(
        self,
        snarl: Snarl,
        graph: VariationGraph,
        include_boundaries: bool = True
    ) -> Tuple[Set[int], Set[int]]:
        """
        Node ids and edge ids inside a snarl but not inside its children.

        Child boundary nodes are included; child interiors are not.
        """
        return self._contents(snarl, graph, include_boundaries, descend=False)

    def _contents(
        self,
        snarl: Snarl,
        graph: VariationGraph,
        include_boundaries: bool,
        descend: bool
    ) -> Tuple[Set[int], Set[int]]:
        boundary = {snarl.start.node_id, snarl.end.node_id}
        nodes: Set[int] = set()
        edges: Set[int] = set()
        children = {} if descend else {
            entry: child
            for child in self._children.get(snarl, [])
            for entry in (child.start, child.end.reverse())
            if entry.node_id not in boundary
        }

        # Traversals pointing inward, or outward from a skipped child
        frontier = [snarl.start, snarl.end.reverse()]
        queued = set(frontier)
        while frontier:
            here = frontier.pop()
            child = children.get(here)
            if child is not None:
                # Hop over the child, keeping only its boundary nodes
                nodes.add(child.start.node_id)
                nodes.add(child.end.node_id)
                onward = [child.start.reverse(), child.end]
            else:
                onward = []
                for there in graph.nodes_next(here):
                    edges.add(graph.get_edge(here, there).id)
                    if there.node_id in boundary:
                        continue
                    nodes.add(there.node_id)
                    onward.extend((there, there.reverse()))
            for step in onward:
                if step not in queued:
                    queued.add(step)
                    frontier.append(step)

        if include_boundaries:
            nodes |= boundary
        return nodes, edges

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
