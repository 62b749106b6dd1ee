#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Snarl Finder — decomposition of a variation graph into nested ultrabubbles.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple
import logging
import time

from .data_structures import VariationGraph, NodeTraversal
from .snarls import Snarl, SnarlManager

logger = logging.getLogger(__name__)


class SnarlFinder(ABC):
    """
    Strategy for finding the (nested) sites of a graph.

    Implementations hold the graph they were built with and keep no state
    between calls.
    """

    @abstractmethod
    def find_snarls(self) -> SnarlManager:
        """Decompose the bound graph and return the complete site hierarchy."""
        pass


@dataclass
class _Bubble:
    """A detected site before it is placed in the hierarchy."""
    snarl: Snarl
    nodes: FrozenSet[int]  # boundary and interior node ids
    ultrabubble: bool = True

    @property
    def is_trivial(self) -> bool:
        """True when the bubble is nothing but an edge between its boundaries."""
        return len(self.nodes) <= 2


class CactusUltrabubbleFinder(SnarlFinder):
    """
    Finds sites: regions joined to the rest of the graph only through the
    outer sides of two boundary nodes, with no tips and no cycle back
    through the start.

    Each oriented node is tried as a start and the nearest closing end is
    taken, so the sites reported are minimal. Sites contained in another
    site become its children. A site is flagged as an ultrabubble when it
    is acyclic and no walk from its start turns back out through the start;
    inversions and internal loops still yield sites, flagged otherwise.
    """

    def __init__(
        self,
        graph: VariationGraph,
        hint_path_name: str = "",
        filter_trivial_bubbles: bool = False
    ):
        """
        Make a new finder for the given graph.

        Args:
            graph: Graph to decompose
            hint_path_name: Path used to orient sites and pick the components
                to decompose; ignored if the graph has no such path
            filter_trivial_bubbles: Drop sites that consist of a single edge
        """
        self.graph = graph
        self.hint_path_name = hint_path_name or ""
        self.filter_trivial_bubbles = filter_trivial_bubbles
        self.logger = logging.getLogger(f"{__name__}.CactusUltrabubbleFinder")

    def find_snarls(self) -> SnarlManager:
        """
        Find all the sites, build the site tree and return it in a manager.
        """
        start_time = time.time()
        hint_ranks = self._hint_ranks()
        allowed_nodes = self._hinted_components(hint_ranks)

        bubbles: Dict[Tuple[NodeTraversal, NodeTraversal], _Bubble] = {}
        for node_id in sorted(allowed_nodes):
            for backward in (False, True):
                found = self._find_bubble_from(NodeTraversal(node_id, backward))
                if found is None:
                    continue
                bubble = self._canonical(found)
                if self.filter_trivial_bubbles and bubble.is_trivial:
                    continue
                bubbles.setdefault(bubble.snarl.key, bubble)

        manager = self._build_tree(list(bubbles.values()), hint_ranks)

        if hint_ranks:
            for snarl in manager.snarls():
                start_rank = hint_ranks.get(snarl.start.node_id)
                end_rank = hint_ranks.get(snarl.end.node_id)
                if start_rank is not None and end_rank is not None and start_rank > end_rank:
                    manager.flip(snarl)

        cyclic = sum(1 for bubble in bubbles.values() if not bubble.ultrabubble)
        self.logger.info(
            f"Found {len(manager)} sites ({len(manager.top_level_snarls())} top-level, "
            f"{cyclic} not ultrabubbles) in {time.time() - start_time:.2f}s"
        )
        return manager

    # ------------------------------------------------------------------
    # Hint path handling
    # ------------------------------------------------------------------

    def _hint_ranks(self) -> Dict[int, int]:
        if not self.hint_path_name:
            return {}
        path = self.graph.paths.get(self.hint_path_name)
        if path is None:
            self.logger.warning(f"Hint path {self.hint_path_name!r} not in graph; ignoring")
            return {}
        ranks: Dict[int, int] = {}
        for rank, step in enumerate(path.steps):
            ranks.setdefault(step.node_id, rank)
        return ranks

    def _hinted_components(self, hint_ranks: Dict[int, int]) -> Set[int]:
        """Nodes to decompose: everything, or the components touching the hint path."""
        if not hint_ranks:
            return set(self.graph.nodes)

        reached: Set[int] = set()
        frontier = list(hint_ranks)
        reached.update(frontier)
        while frontier:
            node_id = frontier.pop()
            for edge in self.graph.edges_of(node_id):
                for neighbour in (edge.from_id, edge.to_id):
                    if neighbour not in reached:
                        reached.add(neighbour)
                        frontier.append(neighbour)

        skipped = len(self.graph.nodes) - len(reached)
        if skipped:
            self.logger.info(f"Skipping {skipped} nodes in components off the hint path")
        return reached

    # ------------------------------------------------------------------
    # Site detection
    # ------------------------------------------------------------------

    def _find_bubble_from(self, start: NodeTraversal) -> Optional[_Bubble]:
        """
        Look for the nearest end closing a site that opens at start.

        Candidate ends are tried in breadth-first order, so the first one
        that closes gives the innermost site.
        """
        if not self.graph.nodes_next(start):
            return None
        for end in self._candidate_ends(start):
            bubble = self._close_site(start, end)
            if bubble is not None:
                return bubble
        return None

    def _candidate_ends(self, start: NodeTraversal) -> Iterator[NodeTraversal]:
        """Traversals reachable from start, nearest first, skipping the start node."""
        queued = {start}
        queue = deque([start])
        while queue:
            here = queue.popleft()
            for there in self.graph.nodes_next(here):
                if there in queued or there.node_id == start.node_id:
                    continue
                queued.add(there)
                queue.append(there)
                yield there

    def _close_site(self, start: NodeTraversal, end: NodeTraversal) -> Optional[_Bubble]:
        """
        Check whether start and end bound a site.

        The region is every traversal reachable from start without crossing
        end. It must reach end, every traversal in it must be able to reach
        end, and every edge on an interior node or on the inner side of a
        boundary must stay inside. A walk may turn back out through the
        inner side of the start (an inversion next to the boundary); that
        only costs the site its ultrabubble flag.
        """
        if any(step.node_id == start.node_id for step in self.graph.nodes_next(end)):
            # Leaving through the end leads straight back into the start
            return None

        region: Set[NodeTraversal] = {start}
        stack = [start]
        reaches_end = False
        turns_back = False
        while stack:
            here = stack.pop()
            for there in self.graph.nodes_next(here):
                if there == end:
                    reaches_end = True
                elif there.node_id == end.node_id:
                    return None
                elif there == start:
                    # Cycle through the start
                    return None
                elif there.node_id == start.node_id:
                    turns_back = True
                elif there not in region:
                    region.add(there)
                    stack.append(there)
        if not reaches_end:
            return None

        interior = {step.node_id for step in region} - {start.node_id}
        inside_sides = {start.right_side, end.left_side}
        for node_id in interior:
            inside_sides.update(((node_id, False), (node_id, True)))
        for side in inside_sides:
            across = self.graph.adjacent_sides(side)
            if not across:
                # Tip inside the candidate site
                return None
            if any(other not in inside_sides for other in across):
                return None

        if region - self._reaching(end, region):
            return None

        ultrabubble = (
            not turns_back
            and len(interior) + 1 == len(region)
            and not self._has_cycle(region)
        )
        if not ultrabubble:
            self.logger.debug(f"Site {start} -> {end} holds a cycle or reversal")
        return _Bubble(
            snarl=Snarl(start=start, end=end),
            nodes=frozenset(interior | {start.node_id, end.node_id}),
            ultrabubble=ultrabubble,
        )

    def _reaching(self, end: NodeTraversal, region: Set[NodeTraversal]) -> Set[NodeTraversal]:
        """Members of region with a walk to end that stays in region."""
        reached = {end}
        stack = [end]
        while stack:
            here = stack.pop()
            for before in self.graph.nodes_prev(here):
                if before in region and before not in reached:
                    reached.add(before)
                    stack.append(before)
        return reached

    def _has_cycle(self, region: Set[NodeTraversal]) -> bool:
        """Is there a directed cycle among the traversals of region?"""
        finished: Set[NodeTraversal] = set()
        for root in sorted(region):
            if root in finished:
                continue
            on_stack = {root}
            stack = [(root, iter(self.graph.nodes_next(root)))]
            while stack:
                here, successors = stack[-1]
                for there in successors:
                    if there not in region or there in finished:
                        continue
                    if there in on_stack:
                        return True
                    on_stack.add(there)
                    stack.append((there, iter(self.graph.nodes_next(there))))
                    break
                else:
                    stack.pop()
                    on_stack.discard(here)
                    finished.add(here)
        return False

    def _canonical(self, bubble: _Bubble) -> _Bubble:
        """Pick one of the two strand readings of a bubble."""
        flipped = bubble.snarl.flipped()
        if (flipped.start.node_id, flipped.start.backward) < (bubble.snarl.start.node_id, bubble.snarl.start.backward):
            return _Bubble(snarl=flipped, nodes=bubble.nodes, ultrabubble=bubble.ultrabubble)
        return bubble

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def _build_tree(self, bubbles: List[_Bubble], hint_ranks: Dict[int, int]) -> SnarlManager:
        """Nest bubbles by containment and register them parents first."""
        by_size = sorted(bubbles, key=lambda b: (len(b.nodes), b.snarl.start.node_id))
        parents: Dict[Snarl, Optional[Snarl]] = {}
        ultrabubbles = {bubble.snarl: bubble.ultrabubble for bubble in bubbles}
        for index, bubble in enumerate(by_size):
            parent = None
            for candidate in by_size[index + 1:]:
                if len(candidate.nodes) > len(bubble.nodes) and bubble.nodes <= candidate.nodes:
                    parent = candidate.snarl
                    break
            parents[bubble.snarl] = parent

        def order(snarl: Snarl) -> Tuple[int, int]:
            first = min(snarl.start.node_id, snarl.end.node_id)
            return (hint_ranks.get(first, len(hint_ranks)), first)

        children: Dict[Optional[Snarl], List[Snarl]] = {}
        for snarl, parent in parents.items():
            children.setdefault(parent, []).append(snarl)

        manager = SnarlManager()
        stack: List[Tuple[Snarl, Optional[Snarl]]] = [
            (snarl, None) for snarl in sorted(children.get(None, []), key=order, reverse=True)
        ]
        while stack:
            snarl, parent = stack.pop()
            manager.add_snarl(snarl, parent, ultrabubble=ultrabubbles[snarl])
            for child in sorted(children.get(snarl, []), key=order, reverse=True):
                stack.append((child, snarl))
        return manager

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
