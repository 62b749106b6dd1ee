"""
SnarlKit v0.1.0

Genotyping strategy core: traversal finders, consistency and support
calculators, genotype priors and likelihoods, and the pipeline driver.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from snarlkit.graph_core.support import Support, support_min, total
from .traversal_finders import (
    TraversalFinder,
    ExhaustiveTraversalFinder,
    ReadRestrictedTraversalFinder,
    PathBasedTraversalFinder,
    TrivialTraversalFinder,
    RepresentativeTraversalFinder,
    SiteSearch,
)
from .consistency import ConsistencyCalculator, SimpleConsistencyCalculator, SiteNodeCache
from .support_calculators import TraversalSupportCalculator, SimpleTraversalSupportCalculator
from .genotype_scoring import (
    Genotype,
    GenotypePriorCalculator,
    FixedGenotypePriorCalculator,
    GenotypeLikelihoodCalculator,
    ConsistencyGenotypeLikelihoodCalculator,
    PoissonGenotypeLikelihoodCalculator,
)
from .vcf_interfaces import Locus, VcfRecordConverter, VcfRecordFilter, MinimumSupportVcfRecordFilter
from .pipeline import GenotypingPipeline

__all__ = [
    "Support",
    "support_min",
    "total",
    "TraversalFinder",
    "ExhaustiveTraversalFinder",
    "ReadRestrictedTraversalFinder",
    "PathBasedTraversalFinder",
    "TrivialTraversalFinder",
    "RepresentativeTraversalFinder",
    "SiteSearch",
    "ConsistencyCalculator",
    "SimpleConsistencyCalculator",
    "SiteNodeCache",
    "TraversalSupportCalculator",
    "SimpleTraversalSupportCalculator",
    "Genotype",
    "GenotypePriorCalculator",
    "FixedGenotypePriorCalculator",
    "GenotypeLikelihoodCalculator",
    "ConsistencyGenotypeLikelihoodCalculator",
    "PoissonGenotypeLikelihoodCalculator",
    "Locus",
    "VcfRecordConverter",
    "VcfRecordFilter",
    "MinimumSupportVcfRecordFilter",
    "GenotypingPipeline",
]
