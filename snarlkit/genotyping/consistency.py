#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Consistency Calculators — which traversals of a site could a read have
come from?

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional, Sequence, Set
import logging
import threading

from snarlkit.graph_core.data_structures import Alignment, NodeTraversal, VariationGraph, reverse_walk
from snarlkit.graph_core.snarls import Snarl, SnarlManager, SnarlTraversal

logger = logging.getLogger(__name__)


class ConsistencyCalculator(ABC):
    """
    Decides, for one read, which of a site's traversals it agrees with.
    """

    @abstractmethod
    def calculate_consistency(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        read: Alignment
    ) -> List[bool]:
        """
        Returns:
            One flag per traversal, in traversal order
        """
        pass


class SiteNodeCache:
    """
    Node ids inside each site, boundaries included, found once per site.

    Safe to share between site workers. The graph must not change while
    the cache is in use.
    """

    def __init__(self, graph: VariationGraph, snarl_manager: SnarlManager):
        self.graph = graph
        self.snarl_manager = snarl_manager
        self._nodes: Dict[Snarl, FrozenSet[int]] = {}
        self._lock = threading.Lock()

    def nodes(self, site: Snarl) -> FrozenSet[int]:
        with self._lock:
            found = self._nodes.get(site)
        if found is None:
            contents, _ = self.snarl_manager.deep_contents(site, self.graph, include_boundaries=True)
            with self._lock:
                found = self._nodes.setdefault(site, frozenset(contents))
        return found


def site_runs(read: Alignment, site_nodes: Set[int]) -> List[List[NodeTraversal]]:
    """Maximal stretches of a read's walk that stay inside the site."""
    runs: List[List[NodeTraversal]] = []
    current: List[NodeTraversal] = []
    for step in read.path:
        if step.node_id in site_nodes:
            current.append(step)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def _contains_run(visits: Sequence[NodeTraversal], run: Sequence[NodeTraversal]) -> bool:
    width = len(run)
    return any(
        list(visits[offset:offset + width]) == list(run)
        for offset in range(len(visits) - width + 1)
    )


def run_orientation(runs: List[List[NodeTraversal]], traversal: SnarlTraversal) -> Optional[bool]:
    """
    Strand on which a read's in-site runs lie along a traversal.

    Returns:
        False if every run occurs in the traversal as written, True if every
        run occurs once reversed, None if neither (the read disagrees)
    """
    if not runs:
        return None
    if all(_contains_run(traversal.visits, run) for run in runs):
        return False
    if all(_contains_run(traversal.visits, reverse_walk(run)) for run in runs):
        return True
    return None


class SimpleConsistencyCalculator(ConsistencyCalculator):
    """
    A read agrees with a traversal when every stretch of the read inside the
    site appears, as a contiguous run of visits, in the traversal on one
    strand. A read that never enters the site agrees with nothing.
    """

    def __init__(
        self,
        graph: VariationGraph,
        snarl_manager: SnarlManager,
        site_nodes: Optional[SiteNodeCache] = None
    ):
        self.graph = graph
        self.snarl_manager = snarl_manager
        self.site_nodes = site_nodes or SiteNodeCache(graph, snarl_manager)

    def calculate_consistency(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        read: Alignment
    ) -> List[bool]:
        runs = site_runs(read, self.site_nodes.nodes(site))
        if not runs:
            return [False] * len(traversals)
        return [run_orientation(runs, traversal) is not None for traversal in traversals]

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
