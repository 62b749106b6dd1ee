#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Configuration schema for SnarlKit.

Defines all available configuration parameters with defaults and validation.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
from typing import Dict, Any, Optional, List
from pathlib import Path
import yaml


TRAVERSAL_STRATEGIES = ['exhaustive', 'read_restricted', 'path_based', 'trivial', 'representative']
LIKELIHOOD_MODELS = ['consistency', 'poisson']


# Default configuration values
DEFAULT_CONFIG = {
    # ========================================================================
    # Site Decomposition
    # ========================================================================
    'snarls': {
        'hint_path_name': None,  # Root orientation along this path if present
        'filter_trivial_bubbles': False,  # Drop sites that are a single edge
    },
    
    # ========================================================================
    # Traversal Finding
    # ========================================================================
    'traversals': {
        'strategy': 'representative',  # One of TRAVERSAL_STRATEGIES
        'max_depth': 10,  # BFS depth for bubble search
        'max_bubble_paths': 100,  # Search intermediates per BFS
        'min_recurrence': 2,  # Read recurrences needed for read-only paths
        'max_path_search_steps': 100,  # Node visits per path walk
    },
    
    # ========================================================================
    # Reference Path
    # ========================================================================
    'reference': {
        'path_name': 'ref',  # Named path used to scaffold traversals
    },
    
    # ========================================================================
    # Genotyping
    # ========================================================================
    'genotyping': {
        'ploidy': 2,
        'homozygous_prior': 0.999,
        'heterozygous_prior': 0.001,
        'likelihood': 'consistency',  # One of LIKELIHOOD_MODELS
        'read_error_rate': 0.01,
        'min_total_support': 1,  # Filter threshold for emitted records
    },
    
    # ========================================================================
    # Execution
    # ========================================================================
    'execution': {
        'threads': 1,  # Worker threads for top-level sites
    },
    
    # ========================================================================
    # Output
    # ========================================================================
    'output': {
        'logging': {
            'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
            'log_file': None,
        },
    },
}


# Per-template overrides layered on DEFAULT_CONFIG by save_config_template
CONFIG_TEMPLATES = {
    'default': {},
    'exhaustive': {
        'traversals': {'strategy': 'exhaustive'},
    },
    'reads': {
        'traversals': {'strategy': 'read_restricted'},
        'genotyping': {'likelihood': 'consistency'},
    },
    'haploid': {
        'genotyping': {'ploidy': 1, 'likelihood': 'poisson'},
    },
}


def merge_configs(base: Dict, override: Dict) -> Dict:
    """
    Recursively layer override onto base, returning a new dict.
    
    Nested sections are merged key by key; any other value replaces the
    base value outright.
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Defaults, optionally overlaid with a YAML file.
    
    A missing or empty file leaves the defaults untouched.
    
    Args:
        config_path: Path to YAML config file (None = use defaults)
    
    Returns:
        Fresh configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None or not Path(config_path).exists():
        return config
    
    with open(config_path) as f:
        user_config = yaml.safe_load(f) or {}
    return merge_configs(config, user_config)


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Write DEFAULT_CONFIG with one of CONFIG_TEMPLATES applied.
    
    Raises:
        ValueError: For an unknown template name
    """
    if template not in CONFIG_TEMPLATES:
        raise ValueError(f"Unknown config template: {template}")
    config = merge_configs(copy.deepcopy(DEFAULT_CONFIG), CONFIG_TEMPLATES[template])
    
    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.
    
    Args:
        config: Configuration to validate
    
    Returns:
        List of validation errors (empty if valid)
    """
    errors = []
    
    traversals = config.get('traversals', {})
    strategy = traversals.get('strategy')
    if strategy not in TRAVERSAL_STRATEGIES:
        errors.append(f"Invalid traversal strategy: {strategy}")
    
    for key in ('max_depth', 'max_bubble_paths', 'min_recurrence', 'max_path_search_steps'):
        value = traversals.get(key)
        if not isinstance(value, int) or value < 1:
            errors.append(f"traversals.{key} must be a positive integer, got {value!r}")
    
    genotyping = config.get('genotyping', {})
    for key in ('homozygous_prior', 'heterozygous_prior', 'read_error_rate'):
        value = genotyping.get(key)
        if not isinstance(value, (int, float)) or not 0.0 < value < 1.0:
            errors.append(f"genotyping.{key} must be a probability in (0, 1), got {value!r}")
    
    ploidy = genotyping.get('ploidy')
    if not isinstance(ploidy, int) or ploidy < 1:
        errors.append(f"genotyping.ploidy must be >= 1, got {ploidy!r}")
    
    if genotyping.get('likelihood') not in LIKELIHOOD_MODELS:
        errors.append(f"Invalid likelihood model: {genotyping.get('likelihood')}")
    
    threads = config.get('execution', {}).get('threads')
    if not isinstance(threads, int) or threads < 1:
        errors.append(f"execution.threads must be >= 1, got {threads!r}")
    
    return errors

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
