#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for genotypes, priors, likelihood models and log-space helpers.
"""

import math

import pytest
from scipy.stats import poisson

from snarlkit.graph_core.snarls import SnarlTraversal
from snarlkit.graph_core.support import Support
from snarlkit.genotyping.genotype_scoring import (
    ConsistencyGenotypeLikelihoodCalculator,
    FixedGenotypePriorCalculator,
    Genotype,
    PoissonGenotypeLikelihoodCalculator,
)
from snarlkit.genotyping.probability import (
    logprob_add, logprob_sum, logprob_to_phred, phred_to_prob, prob_to_logprob,
)

from conftest import fwd


@pytest.fixture
def two_traversals(diamond_site):
    return [
        SnarlTraversal(diamond_site, fwd(1, 2, 4)),
        SnarlTraversal(diamond_site, fwd(1, 3, 4)),
    ]


class TestGenotype:

    def test_alleles_are_unordered(self):
        assert Genotype((1, 0)) == Genotype((0, 1))
        assert Genotype((1, 0)).alleles == (0, 1)
        assert str(Genotype((1, 0))) == "0/1"

    def test_zygosity(self):
        assert Genotype((1, 1)).is_homozygous
        assert not Genotype((0, 1)).is_homozygous
        assert Genotype((2,)).is_homozygous
        assert Genotype((0, 0, 1)).ploidy == 3
        assert Genotype((0, 0, 1)).copies_of(0) == 2

    def test_negative_allele_rejected(self):
        with pytest.raises(ValueError):
            Genotype((0, -1))


class TestFixedGenotypePriorCalculator:

    def test_default_priors(self):
        prior = FixedGenotypePriorCalculator()
        assert prior.calculate_log_prior(Genotype((0, 1))) == pytest.approx(math.log(0.001))
        assert prior.calculate_log_prior(Genotype((1, 1))) == pytest.approx(math.log(0.999))
        assert prior.calculate_log_prior(Genotype((0, 0))) > prior.calculate_log_prior(Genotype((0, 2)))

    def test_prior_ignores_allele_identity(self):
        prior = FixedGenotypePriorCalculator()
        assert prior.calculate_log_prior(Genotype((0, 0))) == prior.calculate_log_prior(Genotype((3, 3)))
        assert prior.calculate_log_prior(Genotype((0, 1))) == prior.calculate_log_prior(Genotype((2, 5)))

    def test_configurable(self):
        prior = FixedGenotypePriorCalculator(homozygous_prior_ln=-1.0, heterozygous_prior_ln=-2.0)
        assert prior.calculate_log_prior(Genotype((0, 1))) == -2.0


class TestConsistencyLikelihood:

    CONSISTENCIES = [[True, False], [True, False], [False, True]]

    def _score(self, site, traversals, alleles, consistencies=None):
        calculator = ConsistencyGenotypeLikelihoodCalculator(read_error_rate=0.01)
        return calculator.calculate_log_likelihood(
            site, traversals, Genotype(alleles),
            self.CONSISTENCIES if consistencies is None else consistencies,
            [Support(), Support()], [],
        )

    def test_homozygous(self, diamond_site, two_traversals):
        expected = 2 * math.log(0.99) + math.log(0.01)
        assert self._score(diamond_site, two_traversals, (0, 0)) == pytest.approx(expected)

    def test_heterozygous(self, diamond_site, two_traversals):
        assert self._score(diamond_site, two_traversals, (0, 1)) == pytest.approx(3 * math.log(0.5))

    def test_uninformative_reads_skipped(self, diamond_site, two_traversals):
        with_blank = self.CONSISTENCIES + [[False, False]]
        assert self._score(diamond_site, two_traversals, (0, 0), with_blank) == pytest.approx(
            self._score(diamond_site, two_traversals, (0, 0))
        )

    def test_no_reads(self, diamond_site, two_traversals):
        assert self._score(diamond_site, two_traversals, (0, 1), []) == 0.0

    def test_allele_out_of_range(self, diamond_site, two_traversals):
        with pytest.raises(ValueError):
            self._score(diamond_site, two_traversals, (0, 2))

    def test_invalid_error_rate(self):
        with pytest.raises(ValueError):
            ConsistencyGenotypeLikelihoodCalculator(read_error_rate=0.0)


class TestPoissonLikelihood:

    def _score(self, site, traversals, alleles, supports):
        calculator = PoissonGenotypeLikelihoodCalculator(error_rate=0.01)
        return calculator.calculate_log_likelihood(site, traversals, Genotype(alleles), [], supports, [])

    def test_matches_poisson_model(self, diamond_site, two_traversals):
        supports = [Support(10, 10), Support()]
        expected = poisson.logpmf(20, 20) + poisson.logpmf(0, 0.2)
        assert self._score(diamond_site, two_traversals, (0, 0), supports) == pytest.approx(expected)

    def test_ordering_follows_evidence(self, diamond_site, two_traversals):
        supports = [Support(10, 10), Support()]
        hom_ref = self._score(diamond_site, two_traversals, (0, 0), supports)
        het = self._score(diamond_site, two_traversals, (0, 1), supports)
        hom_alt = self._score(diamond_site, two_traversals, (1, 1), supports)
        assert hom_ref > het > hom_alt

    def test_balanced_support_favours_heterozygous(self, diamond_site, two_traversals):
        supports = [Support(5, 5), Support(5, 5)]
        het = self._score(diamond_site, two_traversals, (0, 1), supports)
        hom_ref = self._score(diamond_site, two_traversals, (0, 0), supports)
        assert het > hom_ref

    def test_no_support(self, diamond_site, two_traversals):
        assert self._score(diamond_site, two_traversals, (0, 1), [Support(), Support()]) == 0.0

    def test_support_count_mismatch(self, diamond_site, two_traversals):
        with pytest.raises(ValueError):
            self._score(diamond_site, two_traversals, (0, 1), [Support()])


class TestProbabilityHelpers:

    def test_log_conversions(self):
        assert prob_to_logprob(0.0) == float('-inf')
        assert prob_to_logprob(1.0) == 0.0
        assert logprob_add(math.log(0.25), math.log(0.25)) == pytest.approx(math.log(0.5))
        assert logprob_sum([math.log(0.2)] * 5) == pytest.approx(0.0)
        assert logprob_sum([]) == float('-inf')

    def test_phred(self):
        assert phred_to_prob(20) == pytest.approx(0.01)
        assert logprob_to_phred(math.log(0.99)) == pytest.approx(20.0)
        assert logprob_to_phred(0.0) == float('inf')
