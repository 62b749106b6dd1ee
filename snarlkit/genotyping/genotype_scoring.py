#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Genotype Scoring — priors and likelihoods over combinations of traversals.

All scores are natural-log probabilities.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple
import logging
import math

import numpy as np
from scipy.special import logsumexp
from scipy.stats import poisson

from snarlkit.graph_core.data_structures import Alignment
from snarlkit.graph_core.snarls import Snarl, SnarlTraversal
from snarlkit.graph_core.support import Support
from .probability import prob_to_logprob

logger = logging.getLogger(__name__)


# ============================================================================
# Genotype
# ============================================================================

@dataclass(frozen=True)
class Genotype:
    """
    Unordered multiset of traversal indices, one per chromosome copy.

    Alleles are stored sorted so that equal multisets compare equal.
    """
    alleles: Tuple[int, ...]

    def __post_init__(self):
        """Validate and normalize allele indices."""
        alleles = tuple(sorted(int(a) for a in self.alleles))
        if any(a < 0 for a in alleles):
            raise ValueError(f"Genotype allele indices must be >= 0, got {alleles}")
        object.__setattr__(self, 'alleles', alleles)

    @property
    def ploidy(self) -> int:
        return len(self.alleles)

    @property
    def is_homozygous(self) -> bool:
        """True when every copy follows the same traversal (haploid counts)."""
        return len(set(self.alleles)) <= 1

    def copies_of(self, allele: int) -> int:
        """How many copies follow the given traversal."""
        return self.alleles.count(allele)

    def __str__(self) -> str:
        return "/".join(str(a) for a in self.alleles)


# ============================================================================
# Priors
# ============================================================================

class GenotypePriorCalculator(ABC):
    """Prior probability of a genotype, independent of the reads."""

    @abstractmethod
    def calculate_log_prior(self, genotype: Genotype) -> float:
        pass


class FixedGenotypePriorCalculator(GenotypePriorCalculator):
    """
    Gives one fixed prior to homozygous genotypes and another to
    heterozygous ones, whatever the alleles.
    """

    def __init__(
        self,
        homozygous_prior_ln: float = prob_to_logprob(0.999),
        heterozygous_prior_ln: float = prob_to_logprob(0.001)
    ):
        self.homozygous_prior_ln = homozygous_prior_ln
        self.heterozygous_prior_ln = heterozygous_prior_ln

    def calculate_log_prior(self, genotype: Genotype) -> float:
        if genotype.is_homozygous:
            return self.homozygous_prior_ln
        return self.heterozygous_prior_ln


# ============================================================================
# Likelihoods
# ============================================================================

class GenotypeLikelihoodCalculator(ABC):
    """
    Scores a genotype against the evidence at a site.

    Implementations are pure: they are called once per candidate genotype
    and must not keep state between calls.
    """

    @abstractmethod
    def calculate_log_likelihood(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        genotype: Genotype,
        consistencies: Sequence[Sequence[bool]],
        supports: Sequence[Support],
        reads: Sequence[Alignment]
    ) -> float:
        """
        Args:
            site: Site being genotyped
            traversals: Candidate traversals the genotype indexes into
            genotype: Candidate genotype
            consistencies: consistencies[r][t] for read r and traversal t
            supports: Support per traversal
            reads: Reads considered at the site

        Returns:
            log P(evidence | genotype)
        """
        pass


def _check_alleles(genotype: Genotype, traversals: Sequence[SnarlTraversal]):
    if genotype.alleles and genotype.alleles[-1] >= len(traversals):
        raise ValueError(
            f"Genotype {genotype} refers to traversal {genotype.alleles[-1]} "
            f"but only {len(traversals)} exist"
        )


class ConsistencyGenotypeLikelihoodCalculator(GenotypeLikelihoodCalculator):
    """
    Each read is drawn from one of the genotype's copies, chosen uniformly.
    A copy produces a consistent read with probability 1 - error and an
    inconsistent one with probability error. Reads consistent with no
    traversal carry no information and are skipped.
    """

    def __init__(self, read_error_rate: float = 0.01):
        if not 0.0 < read_error_rate < 1.0:
            raise ValueError(f"read_error_rate must be in (0, 1), got {read_error_rate}")
        self.read_error_rate = read_error_rate
        self._log_right = math.log1p(-read_error_rate)
        self._log_wrong = prob_to_logprob(read_error_rate)

    def calculate_log_likelihood(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        genotype: Genotype,
        consistencies: Sequence[Sequence[bool]],
        supports: Sequence[Support],
        reads: Sequence[Alignment]
    ) -> float:
        _check_alleles(genotype, traversals)
        if genotype.ploidy == 0 or not consistencies:
            return 0.0

        matrix = np.asarray(consistencies, dtype=bool).reshape(len(consistencies), len(traversals))
        informative = matrix[matrix.any(axis=1)]
        if informative.shape[0] == 0:
            return 0.0

        per_copy = np.where(informative[:, list(genotype.alleles)], self._log_right, self._log_wrong)
        per_read = logsumexp(per_copy, axis=1) - math.log(genotype.ploidy)
        return float(per_read.sum())


class PoissonGenotypeLikelihoodCalculator(GenotypeLikelihoodCalculator):
    """
    Treats each traversal's total support as a Poisson count whose mean is
    the site depth shared out by copy number. Traversals the genotype does
    not carry are expected to collect only error-rate support.
    """

    def __init__(self, error_rate: float = 0.01):
        if not 0.0 < error_rate < 1.0:
            raise ValueError(f"error_rate must be in (0, 1), got {error_rate}")
        self.error_rate = error_rate

    def calculate_log_likelihood(
        self,
        site: Snarl,
        traversals: Sequence[SnarlTraversal],
        genotype: Genotype,
        consistencies: Sequence[Sequence[bool]],
        supports: Sequence[Support],
        reads: Sequence[Alignment]
    ) -> float:
        _check_alleles(genotype, traversals)
        if len(supports) != len(traversals):
            raise ValueError(f"Got {len(supports)} supports for {len(traversals)} traversals")

        observed = np.array([support.total for support in supports], dtype=float)
        depth = observed.sum()
        if depth == 0 or genotype.ploidy == 0:
            return 0.0

        copies = np.bincount(np.array(genotype.alleles, dtype=int), minlength=len(traversals))
        expected = np.where(copies > 0, copies * depth / genotype.ploidy, self.error_rate * depth)
        return float(poisson.logpmf(np.rint(observed), expected).sum())

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
