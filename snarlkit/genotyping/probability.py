#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Log-space probability helpers.

Likelihoods and priors are carried as natural-log probabilities to avoid
underflow when many small probabilities are multiplied.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import math
from typing import Iterable

import numpy as np
from scipy.special import logsumexp


def prob_to_logprob(prob: float) -> float:
    """Convert a probability to a natural-log probability."""
    if prob <= 0.0:
        return float('-inf')
    return math.log(prob)


def logprob_to_prob(logprob: float) -> float:
    """Convert a natural-log probability back to a probability."""
    return math.exp(logprob)


def logprob_add(a: float, b: float) -> float:
    """log(exp(a) + exp(b)) without leaving log space."""
    return float(np.logaddexp(a, b))


def logprob_sum(logprobs: Iterable[float]) -> float:
    """log of the sum of the probabilities; -inf for an empty input."""
    values = np.fromiter(logprobs, dtype=float)
    if values.size == 0:
        return float('-inf')
    return float(logsumexp(values))


def phred_to_prob(phred: float) -> float:
    """Error probability of a Phred-scaled quality."""
    return 10.0 ** (-phred / 10.0)


def logprob_to_phred(logprob: float) -> float:
    """Phred scale of the complement of a log probability (probability of being wrong)."""
    error = -math.expm1(logprob) if logprob < 0 else 0.0
    if error <= 0.0:
        return float('inf')
    return -10.0 * math.log10(error)

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
