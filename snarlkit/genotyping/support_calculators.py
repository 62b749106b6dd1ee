#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Traversal Support Calculators — turn read consistency into per-traversal
Support.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging

from snarlkit.graph_core.data_structures import Alignment, VariationGraph
from snarlkit.graph_core.snarls import Snarl, SnarlManager, SnarlTraversal
from snarlkit.graph_core.support import Support
from .consistency import SiteNodeCache, run_orientation, site_runs

logger = logging.getLogger(__name__)


class TraversalSupportCalculator(ABC):
    """Computes one Support per traversal of a site."""

    @abstractmethod
    def calculate_supports(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        reads: Sequence[Alignment],
        consistencies: Sequence[Sequence[bool]]
    ) -> List[Support]:
        """
        Args:
            site: Site being genotyped
            traversals: Candidate traversals of the site
            reads: Reads considered at the site
            consistencies: consistencies[r][t] says whether read r agrees
                with traversal t

        Returns:
            One Support per traversal, in traversal order
        """
        pass


class SimpleTraversalSupportCalculator(TraversalSupportCalculator):
    """
    Each read gives one unit of support to every traversal it is consistent
    with, on the strand it reads the traversal from, plus its mapping
    quality.
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

    def calculate_supports(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        reads: Sequence[Alignment],
        consistencies: Sequence[Sequence[bool]]
    ) -> List[Support]:
        if len(consistencies) != len(reads):
            raise ValueError(
                f"Got {len(consistencies)} consistency rows for {len(reads)} reads"
            )

        site_nodes = self.site_nodes.nodes(site)
        supports = [Support() for _ in traversals]

        for read, row in zip(reads, consistencies):
            if len(row) != len(traversals):
                raise ValueError(
                    f"Read {read.name} has {len(row)} consistency flags for {len(traversals)} traversals"
                )
            if not any(row):
                continue
            runs = site_runs(read, site_nodes)
            for index, consistent in enumerate(row):
                if not consistent:
                    continue
                if run_orientation(runs, traversals[index]):
                    unit = Support(reverse=1, quality=read.mapping_quality)
                else:
                    unit = Support(forward=1, quality=read.mapping_quality)
                supports[index] = supports[index] + unit

        logger.debug(f"Site {site}: supports {', '.join(str(s) for s in supports)}")
        return supports

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
