#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Interfaces to downstream variant-record formatting.

The core hands each genotyped site over as a Locus. Building and writing
the actual VCF records is left to VcfRecordConverter implementations.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from snarlkit.graph_core.snarls import Snarl, SnarlTraversal
from snarlkit.graph_core.support import Support
from .genotype_scoring import Genotype


@dataclass
class Locus:
    """
    Everything genotyping learned about one site.

    `genotype` is None for a no-call (no traversals, or too little support).
    """
    site: Snarl
    traversals: List[SnarlTraversal] = field(default_factory=list)
    supports: List[Support] = field(default_factory=list)
    genotype: Optional[Genotype] = None
    log_posteriors: Dict[Genotype, float] = field(default_factory=dict)

    @property
    def is_called(self) -> bool:
        return self.genotype is not None

    @property
    def total_support(self) -> float:
        """Total support across every traversal of the site."""
        return sum(support.total for support in self.supports)

    @property
    def genotype_log_posterior(self) -> Optional[float]:
        if self.genotype is None:
            return None
        return self.log_posteriors.get(self.genotype)


class VcfRecordConverter(ABC):
    """Turns a called Locus into a variant record of the caller's choosing."""

    @abstractmethod
    def convert(self, locus: Locus) -> Any:
        pass


class VcfRecordFilter(ABC):
    """Decides whether a converted record should be kept."""

    @abstractmethod
    def accept_record(self, record: Any) -> bool:
        pass


class MinimumSupportVcfRecordFilter(VcfRecordFilter):
    """Keeps records (anything exposing `total_support`) with enough support."""

    def __init__(self, min_total_support: float = 1.0):
        if min_total_support < 0:
            raise ValueError(f"min_total_support must be >= 0, got {min_total_support}")
        self.min_total_support = min_total_support

    def accept_record(self, record: Any) -> bool:
        return record.total_support >= self.min_total_support

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
