#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Pytest configuration and shared fixtures.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from snarlkit.graph_core.data_structures import Alignment, NodeTraversal, build_graph
from snarlkit.graph_core.augmented_graph import AugmentedGraph
from snarlkit.graph_core.path_index import PathIndex
from snarlkit.graph_core.snarls import Snarl, SnarlManager
from snarlkit.graph_core.support import Support


def fwd(*node_ids):
    """Forward walk over the given node ids."""
    return [NodeTraversal(n) for n in node_ids]


def rev(*node_ids):
    """Backward walk over the given node ids."""
    return [NodeTraversal(n, True) for n in node_ids]


def manager_for(*snarls):
    """SnarlManager holding the given snarls as top-level sites."""
    manager = SnarlManager()
    for snarl in snarls:
        manager.add_snarl(snarl)
    return manager


# ============================================================================
# Graphs
# ============================================================================

@pytest.fixture
def linear_graph():
    """
    Two nodes and one edge, reference only:

        1(A) ──> 2(C)
    """
    return build_graph({1: "A", 2: "C"}, [(1, 2)], {"ref": fwd(1, 2)})


@pytest.fixture
def diamond_graph():
    """
    One site with two single-node arms:

        1(ACG) ──e0──> 2(T) ──e2──> 4(CAT)     (reference)
               ──e1──> 3(G) ──e3──>
    """
    return build_graph(
        {1: "ACG", 2: "T", 3: "G", 4: "CAT"},
        [(1, 2), (1, 3), (2, 4), (3, 4)],
        {"ref": fwd(1, 2, 4)},
    )


@pytest.fixture
def diamond_site():
    return Snarl(NodeTraversal(1), NodeTraversal(4))


@pytest.fixture
def diamond_augmented(diamond_graph):
    """Diamond with the reference arm at 5/5 and the alternate arm at 1/0."""
    augmented = AugmentedGraph(graph=diamond_graph)
    augmented.node_supports.update({
        1: Support(10, 10),
        2: Support(5, 5),
        3: Support(1, 0),
        4: Support(10, 10),
    })
    augmented.edge_supports.update({
        0: Support(5, 5),
        1: Support(1, 0),
        2: Support(5, 5),
        3: Support(1, 0),
    })
    return augmented


@pytest.fixture
def diamond_index(diamond_graph):
    return PathIndex(diamond_graph, "ref")


@pytest.fixture
def nested_graph():
    """
    A site 1 -> 6 holding a child site 2 -> 5 and a bypass through 7:

        1 ──> 2 ──> 3 ──> 5 ──> 6      (reference: 1,2,3,5,6)
              └──> 4 ──┘      │
        └──────> 7 ───────────┘
    """
    return build_graph(
        {1: "AC", 2: "G", 3: "T", 4: "C", 5: "GA", 6: "TT", 7: "AAAA"},
        [(1, 2), (2, 3), (2, 4), (3, 5), (4, 5), (5, 6), (1, 7), (7, 6)],
        {"ref": fwd(1, 2, 3, 5, 6)},
    )


@pytest.fixture
def deletion_graph():
    """Reference 1,2,3 with a deletion edge skipping node 2."""
    return build_graph(
        {1: "AA", 2: "CC", 3: "GG"},
        [(1, 2), (2, 3), (1, 3)],
        {"ref": fwd(1, 2, 3)},
    )


@pytest.fixture
def looped_graph():
    """Diamond whose alternate node 3 carries a self-loop."""
    return build_graph(
        {1: "A", 2: "C", 3: "G", 4: "T"},
        [(1, 2), (1, 3), (2, 4), (3, 4), (3, 3)],
        {"ref": fwd(1, 2, 4)},
    )


@pytest.fixture
def two_site_graph():
    """Two diamonds in a row: 1 -> {2|3} -> 4 -> {5|6} -> 7."""
    return build_graph(
        {n: "ACGT" for n in range(1, 8)},
        [(1, 2), (1, 3), (2, 4), (3, 4), (4, 5), (4, 6), (5, 7), (6, 7)],
        {"ref": fwd(1, 2, 4, 5, 7)},
    )


# ============================================================================
# Reads
# ============================================================================

@pytest.fixture
def diamond_reads():
    """Two forward reference reads, one reverse reference read, one alternate read."""
    return [
        Alignment("r1", fwd(1, 2, 4), mapping_quality=60),
        Alignment("r2", fwd(1, 2, 4), mapping_quality=60),
        Alignment("r3", rev(4, 2, 1), mapping_quality=30),
        Alignment("a1", fwd(1, 3, 4), mapping_quality=60),
    ]

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
