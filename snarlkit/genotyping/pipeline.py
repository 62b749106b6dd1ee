#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Genotyping Pipeline — wires the strategy stages together and genotypes
every site of a graph.

Per site: traversal finding -> read consistency -> traversal support ->
prior + likelihood for every genotype -> Locus. Top-level sites run in
parallel; nested sites are genotyped by the worker that owns their
top-level ancestor.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from itertools import combinations_with_replacement
from typing import Any, Dict, List, Optional, Sequence
import logging
import time

from snarlkit.graph_core.augmented_graph import AugmentedGraph
from snarlkit.graph_core.data_structures import Alignment, GraphError, VariationGraph
from snarlkit.graph_core.path_index import PathIndex
from snarlkit.graph_core.snarl_finder_module import CactusUltrabubbleFinder
from snarlkit.graph_core.snarls import Snarl, SnarlManager
from .consistency import ConsistencyCalculator, SimpleConsistencyCalculator, SiteNodeCache
from .genotype_scoring import (
    ConsistencyGenotypeLikelihoodCalculator,
    FixedGenotypePriorCalculator,
    Genotype,
    GenotypeLikelihoodCalculator,
    GenotypePriorCalculator,
    PoissonGenotypeLikelihoodCalculator,
)
from .probability import logprob_sum, prob_to_logprob
from .support_calculators import SimpleTraversalSupportCalculator, TraversalSupportCalculator
from .traversal_finders import (
    ExhaustiveTraversalFinder,
    PathBasedTraversalFinder,
    ReadRestrictedTraversalFinder,
    RepresentativeTraversalFinder,
    TraversalFinder,
    TrivialTraversalFinder,
)
from .vcf_interfaces import Locus, VcfRecordConverter, VcfRecordFilter

logger = logging.getLogger(__name__)


class GenotypingPipeline:
    """
    Genotyping driver.

    Depends only on the stage interfaces, so any stage can be swapped for
    another strategy (or a fake in tests).
    """

    def __init__(
        self,
        augmented: AugmentedGraph,
        snarl_manager: SnarlManager,
        traversal_finder: TraversalFinder,
        consistency_calculator: ConsistencyCalculator,
        support_calculator: TraversalSupportCalculator,
        likelihood_calculator: GenotypeLikelihoodCalculator,
        prior_calculator: GenotypePriorCalculator,
        reads: Sequence[Alignment],
        ploidy: int = 2,
        min_total_support: float = 1,
        threads: int = 1,
        converter: Optional[VcfRecordConverter] = None,
        record_filter: Optional[VcfRecordFilter] = None
    ):
        """
        Args:
            augmented: Annotated graph; must be fully populated before run()
            snarl_manager: Site hierarchy to genotype
            traversal_finder: Strategy for candidate traversals
            consistency_calculator: Strategy for read/traversal agreement
            support_calculator: Strategy for per-traversal support
            likelihood_calculator: Genotype likelihood model
            prior_calculator: Genotype prior
            reads: Aligned reads
            ploidy: Copies per genotype
            min_total_support: Sites with less total support are not called
            threads: Worker threads across top-level sites
            converter: Optional record converter applied by records()
            record_filter: Optional filter applied to converted records
        """
        if ploidy < 1:
            raise ValueError(f"ploidy must be >= 1, got {ploidy}")
        self.augmented = augmented
        self.snarl_manager = snarl_manager
        self.traversal_finder = traversal_finder
        self.consistency_calculator = consistency_calculator
        self.support_calculator = support_calculator
        self.likelihood_calculator = likelihood_calculator
        self.prior_calculator = prior_calculator
        self.reads = list(reads)
        self.ploidy = ploidy
        self.min_total_support = min_total_support
        self.threads = max(1, threads)
        self.converter = converter
        self.record_filter = record_filter
        self.logger = logging.getLogger(f"{__name__}.GenotypingPipeline")

    # ------------------------------------------------------------------
    # Construction from configuration
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        graph: VariationGraph,
        reads: Sequence[Alignment],
        converter: Optional[VcfRecordConverter] = None,
        record_filter: Optional[VcfRecordFilter] = None
    ) -> "GenotypingPipeline":
        """
        Build every stage from a configuration dictionary.

        Populates the augmented graph's supports from the reads, decomposes
        the graph into sites and picks the configured strategies.

        Raises:
            GraphError: If the representative strategy is chosen and the
                reference path is missing
            ValueError: For an unknown strategy or likelihood model
        """
        snarl_cfg = config.get('snarls', {})
        trav_cfg = config.get('traversals', {})
        geno_cfg = config.get('genotyping', {})
        exec_cfg = config.get('execution', {})
        ref_name = config.get('reference', {}).get('path_name', 'ref')

        augmented = AugmentedGraph(graph=graph)
        augmented.load_read_supports(reads)

        index = None
        if ref_name in graph.paths:
            index = PathIndex(graph, ref_name)
            augmented.classify_against_reference(index)
        else:
            logger.warning(f"Reference path {ref_name!r} not in graph")

        finder = CactusUltrabubbleFinder(
            graph,
            hint_path_name=snarl_cfg.get('hint_path_name') or (ref_name if index else ""),
            filter_trivial_bubbles=snarl_cfg.get('filter_trivial_bubbles', False),
        )
        manager = finder.find_snarls()

        reads_by_name = {read.name: read for read in reads}
        strategy = trav_cfg.get('strategy', 'representative')
        if strategy == 'representative':
            if index is None:
                raise GraphError(f"Representative traversals need reference path {ref_name!r}")
            traversal_finder: TraversalFinder = RepresentativeTraversalFinder(
                augmented, manager, index,
                max_depth=trav_cfg.get('max_depth', 10),
                max_bubble_paths=trav_cfg.get('max_bubble_paths', 100),
            )
        elif strategy == 'exhaustive':
            traversal_finder = ExhaustiveTraversalFinder(graph, manager)
        elif strategy == 'read_restricted':
            traversal_finder = ReadRestrictedTraversalFinder(
                graph, manager, reads_by_name,
                min_recurrence=trav_cfg.get('min_recurrence', 2),
                max_path_search_steps=trav_cfg.get('max_path_search_steps', 100),
            )
        elif strategy == 'path_based':
            traversal_finder = PathBasedTraversalFinder(graph, exclude_paths=reads_by_name)
        elif strategy == 'trivial':
            traversal_finder = TrivialTraversalFinder(graph)
        else:
            raise ValueError(f"Unknown traversal strategy: {strategy}")

        error_rate = geno_cfg.get('read_error_rate', 0.01)
        model = geno_cfg.get('likelihood', 'consistency')
        if model == 'consistency':
            likelihood: GenotypeLikelihoodCalculator = ConsistencyGenotypeLikelihoodCalculator(error_rate)
        elif model == 'poisson':
            likelihood = PoissonGenotypeLikelihoodCalculator(error_rate)
        else:
            raise ValueError(f"Unknown likelihood model: {model}")

        prior = FixedGenotypePriorCalculator(
            homozygous_prior_ln=prob_to_logprob(geno_cfg.get('homozygous_prior', 0.999)),
            heterozygous_prior_ln=prob_to_logprob(geno_cfg.get('heterozygous_prior', 0.001)),
        )

        site_nodes = SiteNodeCache(graph, manager)
        logger.info(f"Pipeline: {strategy} traversals, {model} likelihood, {len(reads)} reads")
        return cls(
            augmented=augmented,
            snarl_manager=manager,
            traversal_finder=traversal_finder,
            consistency_calculator=SimpleConsistencyCalculator(graph, manager, site_nodes),
            support_calculator=SimpleTraversalSupportCalculator(graph, manager, site_nodes),
            likelihood_calculator=likelihood,
            prior_calculator=prior,
            reads=reads,
            ploidy=geno_cfg.get('ploidy', 2),
            min_total_support=geno_cfg.get('min_total_support', 1),
            threads=exec_cfg.get('threads', 1),
            converter=converter,
            record_filter=record_filter,
        )

    # ------------------------------------------------------------------
    # Genotyping
    # ------------------------------------------------------------------

    def genotype_site(self, site: Snarl) -> Locus:
        """Run every stage on one site."""
        traversals = self.traversal_finder.find_traversals(site)
        if not traversals:
            self.logger.debug(f"Site {site}: no traversals, not called")
            return Locus(site=site)

        consistencies = [
            self.consistency_calculator.calculate_consistency(site, traversals, read)
            for read in self.reads
        ]
        supports = self.support_calculator.calculate_supports(site, traversals, self.reads, consistencies)
        locus = Locus(site=site, traversals=list(traversals), supports=supports)

        if locus.total_support < self.min_total_support:
            self.logger.debug(f"Site {site}: support {locus.total_support:g} too low, not called")
            return locus

        scores: Dict[Genotype, float] = {}
        for alleles in combinations_with_replacement(range(len(traversals)), self.ploidy):
            genotype = Genotype(alleles)
            scores[genotype] = (
                self.prior_calculator.calculate_log_prior(genotype)
                + self.likelihood_calculator.calculate_log_likelihood(
                    site, traversals, genotype, consistencies, supports, self.reads
                )
            )

        # Normalize to log posteriors; first genotype wins ties
        normalizer = logprob_sum(scores.values())
        locus.log_posteriors = {genotype: score - normalizer for genotype, score in scores.items()}
        locus.genotype = max(scores, key=scores.get)
        return locus

    def _genotype_tree(self, root: Snarl) -> List[Locus]:
        """Genotype a top-level site and everything nested in it, parents first."""
        loci = []
        stack = [root]
        while stack:
            site = stack.pop()
            loci.append(self.genotype_site(site))
            stack.extend(reversed(self.snarl_manager.children_of(site)))
        return loci

    def run(self) -> List[Locus]:
        """
        Genotype every site.

        Returns:
            One Locus per site, in preorder of the site hierarchy
        """
        start_time = time.time()
        per_tree = self.snarl_manager.for_each_top_level_snarl_parallel(self._genotype_tree, self.threads)
        loci = [locus for tree in per_tree for locus in tree]

        called = sum(1 for locus in loci if locus.is_called)
        self.logger.info(
            f"Genotyped {len(loci)} sites ({called} called) "
            f"in {time.time() - start_time:.2f}s"
        )
        return loci

    def records(self, loci: Sequence[Locus]) -> List[Any]:
        """
        Convert called loci to records and keep those the filter accepts.

        Raises:
            ValueError: If no converter was configured
        """
        if self.converter is None:
            raise ValueError("No VcfRecordConverter configured")
        records = []
        for locus in loci:
            if not locus.is_called:
                continue
            record = self.converter.convert(locus)
            if self.record_filter is None or self.record_filter.accept_record(record):
                records.append(record)
        return records

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
