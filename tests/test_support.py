"""
Tests for feature flags, the result cache and NLP enrichment
"""

import pytest

from config.feature_flags import FeatureFlags, get_feature_flags, set_feature_flags
from src.query_engine.enrichment import NullEntityEnricher, create_enricher, merge_entities
from src.query_engine.models import ActionType, QueryType, Route, StructuredQuery
from src.query_engine.query_cache import QueryCache


class TestFeatureFlags:
    """Environment-driven feature flags"""

    def setup_method(self):
        """Reset feature flags before each test"""
        set_feature_flags(None)

    def teardown_method(self):
        set_feature_flags(None)

    def test_defaults(self, monkeypatch):
        for name in ("ENABLE_SPELL_CORRECTION", "ENABLE_NLP_ENRICHMENT",
                     "ENABLE_RESULT_CACHE", "LOG_ROUTING_DECISIONS"):
            monkeypatch.delenv(name, raising=False)

        flags = get_feature_flags()
        assert flags.to_dict() == FeatureFlags().to_dict()

    def test_loaded_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENABLE_SPELL_CORRECTION", "false")
        monkeypatch.setenv("ENABLE_NLP_ENRICHMENT", "TRUE")

        flags = get_feature_flags()
        assert not flags.enable_spell_correction
        assert flags.enable_nlp_enrichment

    def test_singleton_and_override(self):
        assert get_feature_flags() is get_feature_flags()

        custom = FeatureFlags(enable_result_cache=False)
        set_feature_flags(custom)
        assert get_feature_flags() is custom


class TestQueryCache:
    """LRU cache of interpretations"""

    @pytest.fixture
    def result(self):
        return StructuredQuery(
            original_text="help",
            corrected_text="help",
            query_type=QueryType.HELP,
            action_type=ActionType.HELP_GENERAL,
            route=Route.HELP,
        )

    def test_key_ignores_spacing_not_case(self):
        assert QueryCache.make_key("show  contract 1") == QueryCache.make_key(" show contract 1 ")
        assert QueryCache.make_key("by Vinod") != QueryCache.make_key("by vinod")

    def test_key_includes_rules_version(self):
        assert QueryCache.make_key("help", "v1") != QueryCache.make_key("help", "v2")

    def test_get_and_set(self, result):
        cache = QueryCache(max_size=2)

        assert cache.get("help") is None
        cache.set("help", result)
        assert cache.get("help") is result

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 50.0

    def test_least_recently_used_evicted(self, result):
        cache = QueryCache(max_size=2)
        cache.set("a", result)
        cache.set("b", result)
        cache.get("a")
        cache.set("c", result)

        assert cache.get("a") is result
        assert cache.get("b") is None
        assert len(cache) == 2

    def test_clear(self, result):
        cache = QueryCache()
        cache.set("help", result)
        cache.clear()

        assert len(cache) == 0
        assert cache.get_stats()["cache_size"] == 0


class TestEnrichment:
    """Optional NLP enrichment"""

    def test_disabled_gives_null_enricher(self):
        enricher = create_enricher(False)

        assert isinstance(enricher, NullEntityEnricher)
        assert enricher.enrich("contracts by Alice") == {}

    def test_unavailable_model_falls_back(self):
        """Missing spaCy package or model never breaks the pipeline"""
        enricher = create_enricher(True, "no_such_model_xyz")
        assert isinstance(enricher, NullEntityEnricher)

    def test_merge_keeps_extracted_values(self):
        merged = merge_entities(
            {"customer_name": "Siemens"},
            {"customer_name": "Siemens AG", "created_by": "Alice", "part_number": ""},
        )
        assert merged == {"customer_name": "Siemens", "created_by": "Alice"}
