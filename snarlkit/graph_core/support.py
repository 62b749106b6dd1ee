#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Support — strand-decomposed read support values and their arithmetic.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from dataclasses import dataclass
from numbers import Integral, Real


@dataclass(frozen=True)
class Support:
    """
    Read support for a graph element or traversal.

    Counts are kept per strand; `quality` is an optional quality-weighted
    total (e.g. summed mapping qualities). Supports are values: every
    operator returns a new Support.
    """
    forward: float = 0.0
    reverse: float = 0.0
    quality: float = 0.0

    def __post_init__(self):
        """Validate support counts."""
        for name in ('forward', 'reverse', 'quality'):
            value = getattr(self, name)
            if not isinstance(value, Real):
                raise TypeError(f"Support.{name} must be numeric, got {value!r}")
            if value < 0:
                raise ValueError(f"Support.{name} must be >= 0, got {value}")

    @property
    def total(self) -> float:
        """Total read support across both strands."""
        return self.forward + self.reverse

    def __add__(self, other: "Support") -> "Support":
        """Add two Support values together, accounting for strand."""
        if not isinstance(other, Support):
            return NotImplemented
        return Support(
            forward=self.forward + other.forward,
            reverse=self.reverse + other.reverse,
            quality=self.quality + other.quality,
        )

    def __mul__(self, scale: int) -> "Support":
        """Scale a Support by an integral factor."""
        if isinstance(scale, bool) or not isinstance(scale, Integral):
            return NotImplemented
        if scale < 0:
            raise ValueError(f"Support scale must be >= 0, got {scale}")
        return Support(
            forward=self.forward * scale,
            reverse=self.reverse * scale,
            quality=self.quality * scale,
        )

    __rmul__ = __mul__

    def min(self, other: "Support") -> "Support":
        """Per-strand minimum of two supports."""
        return Support(
            forward=min(self.forward, other.forward),
            reverse=min(self.reverse, other.reverse),
            quality=min(self.quality, other.quality),
        )

    def __str__(self) -> str:
        return f"{self.forward:g}+/{self.reverse:g}-"


def total(support: Support) -> float:
    """Get the total read support in a Support."""
    return support.total


def support_min(a: Support, b: Support) -> Support:
    """
    Get the minimum support of a pair of Supports, by taking the min in each
    orientation (not the smaller of the two totals).
    """
    return a.min(b)

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
