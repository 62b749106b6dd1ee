#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Sequence utility functions for SnarlKit.

Provides the strand handling needed to spell oriented graph walks.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""


_COMPLEMENT_MAP = {
    'A': 'T', 'T': 'A',
    'G': 'C', 'C': 'G',
    'N': 'N',
    'a': 't', 't': 'a',
    'g': 'c', 'c': 'g',
    'n': 'n'
}


def reverse_complement(sequence: str) -> str:
    """
    Generate reverse complement of DNA sequence.
    
    Args:
        sequence: DNA sequence string
        
    Returns:
        Reverse complement sequence
        
    Example:
        >>> reverse_complement("ATCG")
        'CGAT'
    """
    return ''.join(_COMPLEMENT_MAP.get(base, base) for base in reversed(sequence))


def oriented_sequence(sequence: str, backward: bool) -> str:
    """
    Sequence of a node as read in the given orientation.
    
    Example:
        >>> oriented_sequence("AAC", True)
        'GTT'
    """
    return reverse_complement(sequence) if backward else sequence

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
