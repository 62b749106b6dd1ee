#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for the site model, the SnarlManager hierarchy and the ultrabubble
finder.

Covers:
  - Snarl / SnarlTraversal value semantics
  - Hierarchy queries, flipping and entry lookup
  - Deep vs shallow site contents
  - Fork-join over top-level sites
  - Site detection, nesting, hint-path orientation, trivial filtering
  - Inversions and cycles inside sites flagged as non-ultrabubbles
"""

import pytest

from snarlkit.graph_core.data_structures import NodeTraversal, build_graph
from snarlkit.graph_core.snarl_finder_module import CactusUltrabubbleFinder
from snarlkit.graph_core.snarls import Snarl, SnarlManager, SnarlTraversal

from conftest import fwd, rev


def _nested_manager():
    top = Snarl(NodeTraversal(1), NodeTraversal(6))
    child = Snarl(NodeTraversal(2), NodeTraversal(5))
    manager = SnarlManager()
    manager.add_snarl(top)
    manager.add_snarl(child, parent=top)
    return manager, top, child


# ============================================================================
# Value types
# ============================================================================

class TestSnarlValues:

    def test_coinciding_boundaries_rejected(self):
        with pytest.raises(ValueError):
            Snarl(NodeTraversal(1), NodeTraversal(1))

    def test_flipped_site(self):
        site = Snarl(NodeTraversal(1), NodeTraversal(4))
        assert site.flipped() == Snarl(NodeTraversal(4, True), NodeTraversal(1, True))
        assert site.flipped().flipped() == site

    def test_traversal_spans_and_flips(self, diamond_site):
        traversal = SnarlTraversal(diamond_site, fwd(1, 3, 4))
        assert traversal.spans_snarl()
        assert traversal.node_ids == [1, 3, 4]
        assert isinstance(traversal.visits, tuple)

        flipped = traversal.flipped()
        assert flipped.snarl == diamond_site.flipped()
        assert list(flipped.visits) == rev(4, 3, 1)
        assert flipped.spans_snarl()

    def test_traversals_hash_by_value(self, diamond_site):
        a = SnarlTraversal(diamond_site, fwd(1, 2, 4))
        b = SnarlTraversal(diamond_site, tuple(fwd(1, 2, 4)))
        assert a == b
        assert len({a, b}) == 1


# ============================================================================
# Manager
# ============================================================================

class TestSnarlManager:

    def test_hierarchy_queries(self):
        manager, top, child = _nested_manager()
        assert manager.top_level_snarls() == [top]
        assert manager.children_of(top) == [child]
        assert manager.parent_of(child) == top
        assert manager.is_root(top) and not manager.is_root(child)
        assert manager.is_leaf(child) and not manager.is_leaf(top)
        assert manager.depth_of(child) == 1
        assert manager.snarls() == [top, child]
        assert len(manager) == 2 and child in manager

    def test_duplicate_and_orphan_rejected(self):
        manager, top, _ = _nested_manager()
        with pytest.raises(ValueError):
            manager.add_snarl(top)
        with pytest.raises(ValueError):
            manager.add_snarl(Snarl(NodeTraversal(8), NodeTraversal(9)), parent=Snarl(NodeTraversal(10), NodeTraversal(11)))

    def test_into_which_snarl(self):
        manager, top, child = _nested_manager()
        assert manager.into_which_snarl(1, False) == top
        assert manager.into_which_snarl(6, True) == top
        assert manager.into_which_snarl(2, False) == child
        assert manager.into_which_snarl(5, True) == child
        assert manager.into_which_snarl(3, False) is None

    def test_flip_keeps_position(self):
        manager, top, child = _nested_manager()
        flipped = manager.flip(top)
        assert manager.top_level_snarls() == [flipped]
        assert manager.children_of(flipped) == [child]
        assert manager.parent_of(child) == flipped
        assert manager.into_which_snarl(6, True) == flipped
        assert top not in manager

    def test_preorder_visits_parents_first(self):
        manager, top, child = _nested_manager()
        seen = []
        manager.for_each_snarl_preorder(seen.append)
        assert seen == [top, child]


class TestContents:

    def test_deep_contents(self, nested_graph):
        manager, top, _ = _nested_manager()
        nodes, edges = manager.deep_contents(top, nested_graph)
        assert nodes == {1, 2, 3, 4, 5, 6, 7}
        assert edges == set(range(8))

    def test_deep_contents_without_boundaries(self, nested_graph):
        manager, top, _ = _nested_manager()
        nodes, _ = manager.deep_contents(top, nested_graph, include_boundaries=False)
        assert nodes == {2, 3, 4, 5, 7}

    def test_shallow_contents_skip_child_interior(self, nested_graph):
        manager, top, _ = _nested_manager()
        nodes, edges = manager.shallow_contents(top, nested_graph)
        assert nodes == {1, 2, 5, 6, 7}
        # 1->2, 5->6, 1->7, 7->6
        assert edges == {0, 5, 6, 7}

    def test_child_contents(self, nested_graph):
        manager, _, child = _nested_manager()
        nodes, edges = manager.deep_contents(child, nested_graph)
        assert nodes == {2, 3, 4, 5}
        assert edges == {1, 2, 3, 4}


class TestParallelTopLevel:

    def test_results_in_top_level_order(self):
        sites = [Snarl(NodeTraversal(n), NodeTraversal(n + 1)) for n in range(1, 20, 2)]
        manager = SnarlManager()
        for site in sites:
            manager.add_snarl(site)
        results = manager.for_each_top_level_snarl_parallel(lambda s: s.start.node_id, threads=4)
        assert results == [site.start.node_id for site in sites]

    def test_worker_error_propagates(self):
        manager = SnarlManager()
        manager.add_snarl(Snarl(NodeTraversal(1), NodeTraversal(2)))
        manager.add_snarl(Snarl(NodeTraversal(3), NodeTraversal(4)))

        def explode(site):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            manager.for_each_top_level_snarl_parallel(explode, threads=2)


# ============================================================================
# Ultrabubble finder
# ============================================================================

class TestCactusUltrabubbleFinder:

    def test_linear_site(self, linear_graph):
        manager = CactusUltrabubbleFinder(linear_graph, "ref").find_snarls()
        assert manager.top_level_snarls() == [Snarl(NodeTraversal(1), NodeTraversal(2))]

    def test_trivial_sites_filtered(self, linear_graph):
        manager = CactusUltrabubbleFinder(linear_graph, "ref", filter_trivial_bubbles=True).find_snarls()
        assert len(manager) == 0

    def test_diamond_site(self, diamond_graph, diamond_site):
        manager = CactusUltrabubbleFinder(diamond_graph, "ref", filter_trivial_bubbles=True).find_snarls()
        assert manager.snarls() == [diamond_site]

    def test_nested_sites(self, nested_graph):
        manager = CactusUltrabubbleFinder(nested_graph, "ref").find_snarls()
        top = Snarl(NodeTraversal(1), NodeTraversal(6))
        child = Snarl(NodeTraversal(2), NodeTraversal(5))
        assert manager.top_level_snarls() == [top]
        assert manager.children_of(top) == [child]
        assert manager.is_leaf(child)

    def test_sibling_sites_follow_hint_path(self, two_site_graph):
        manager = CactusUltrabubbleFinder(two_site_graph, "ref").find_snarls()
        assert manager.top_level_snarls() == [
            Snarl(NodeTraversal(1), NodeTraversal(4)),
            Snarl(NodeTraversal(4), NodeTraversal(7)),
        ]

    def test_hint_path_sets_orientation(self, diamond_graph):
        diamond_graph.add_path("minus", rev(4, 2, 1))
        manager = CactusUltrabubbleFinder(diamond_graph, "minus").find_snarls()
        assert manager.snarls() == [Snarl(NodeTraversal(4, True), NodeTraversal(1, True))]

    def test_missing_hint_path_ignored(self, diamond_graph, diamond_site):
        manager = CactusUltrabubbleFinder(diamond_graph, "absent").find_snarls()
        assert manager.snarls() == [diamond_site]

    def test_cycle_through_start_is_not_a_site(self):
        graph = build_graph({1: "A", 2: "C", 3: "G"}, [(1, 2), (2, 1), (2, 3)])
        manager = CactusUltrabubbleFinder(graph).find_snarls()
        assert len(manager) == 0

    def test_acyclic_sites_are_ultrabubbles(self, nested_graph):
        manager = CactusUltrabubbleFinder(nested_graph, "ref").find_snarls()
        assert all(manager.is_ultrabubble(site) for site in manager)

    def test_inversion_site(self):
        # Node 2 can be read either way between 1 and 3
        graph = build_graph(
            {1: "A", 2: "CG", 3: "T"},
            [(1, 2), (2, 3), (1, 2, False, True), (2, 3, True, False)],
            {"ref": fwd(1, 2, 3)},
        )
        manager = CactusUltrabubbleFinder(graph, "ref").find_snarls()
        site = Snarl(NodeTraversal(1), NodeTraversal(3))
        assert manager.snarls() == [site]
        assert not manager.is_ultrabubble(site)

    def test_self_loop_inside_site(self, looped_graph):
        manager = CactusUltrabubbleFinder(looped_graph, "ref").find_snarls()
        site = Snarl(NodeTraversal(1), NodeTraversal(4))
        assert manager.snarls() == [site]
        assert not manager.is_ultrabubble(site)

    def test_flag_survives_flip(self, looped_graph):
        looped_graph.add_path("minus", rev(4, 2, 1))
        manager = CactusUltrabubbleFinder(looped_graph, "minus").find_snarls()
        site = Snarl(NodeTraversal(4, True), NodeTraversal(1, True))
        assert manager.snarls() == [site]
        assert not manager.is_ultrabubble(site)

    def test_tip_inside_region_is_not_a_site(self):
        # Node 3 dangles off node 2, so nothing closes around it
        graph = build_graph({1: "A", 2: "C", 3: "G", 4: "T"}, [(1, 2), (2, 3), (2, 4)])
        manager = CactusUltrabubbleFinder(graph).find_snarls()
        assert Snarl(NodeTraversal(1), NodeTraversal(4)) not in manager
        assert Snarl(NodeTraversal(1), NodeTraversal(2)) in manager

    def test_components_off_hint_path_skipped(self, diamond_graph):
        diamond_graph.create_node("AA", node_id=10)
        diamond_graph.create_node("CC", node_id=11)
        diamond_graph.create_edge(10, 11)
        manager = CactusUltrabubbleFinder(diamond_graph, "ref").find_snarls()
        assert all(site.start.node_id < 10 for site in manager)
        without_hint = CactusUltrabubbleFinder(diamond_graph).find_snarls()
        assert Snarl(NodeTraversal(10), NodeTraversal(11)) in without_hint
