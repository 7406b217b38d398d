"""
Feature Flag Configuration

Switches optional query engine behavior on and off without code changes.
"""

import os
from typing import Optional
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class FeatureFlags:
    """Feature flag configuration"""

    # Stage 1 spelling normalization
    enable_spell_correction: bool = True

    # Merge entities from the optional NLP toolkit (needs spaCy installed)
    enable_nlp_enrichment: bool = False

    # LRU cache of results keyed by corrected text
    enable_result_cache: bool = True

    # Logging
    log_routing_decisions: bool = True

    def to_dict(self) -> dict:
        return {
            "enable_spell_correction": self.enable_spell_correction,
            "enable_nlp_enrichment": self.enable_nlp_enrichment,
            "enable_result_cache": self.enable_result_cache,
            "log_routing_decisions": self.log_routing_decisions,
        }


# Global feature flags instance
_feature_flags: Optional[FeatureFlags] = None


def get_feature_flags() -> FeatureFlags:
    """Get or create feature flags singleton"""
    global _feature_flags

    if _feature_flags is None:
        _feature_flags = FeatureFlags(
            # Load from environment
            enable_spell_correction=_env_flag("ENABLE_SPELL_CORRECTION", "true"),
            enable_nlp_enrichment=_env_flag("ENABLE_NLP_ENRICHMENT", "false"),
            enable_result_cache=_env_flag("ENABLE_RESULT_CACHE", "true"),
            log_routing_decisions=_env_flag("LOG_ROUTING_DECISIONS", "true"),
        )

    return _feature_flags


def set_feature_flags(flags: Optional[FeatureFlags]):
    """Set feature flags (for testing). None reloads from environment."""
    global _feature_flags
    _feature_flags = flags
