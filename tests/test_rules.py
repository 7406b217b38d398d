"""
Tests for the engine rule set: loading, overrides and validation
"""

import pytest

from src.query_engine.rules import (
    RuleConfigError,
    build_engine_config,
    compile_any,
    default_tables,
    load_engine_config,
    merge_overrides,
)


class TestDefaultRules:
    """Tables shipped in config/query_rules.py"""

    def test_default_version(self, engine_config):
        assert engine_config.version == "2024.4"

    def test_corrections_do_not_chain(self, engine_config):
        corrections = engine_config.spell_corrections
        assert not set(corrections.values()) & set(corrections)

    def test_tables_are_read_only(self, engine_config):
        with pytest.raises(TypeError):
            engine_config.tables["rules_version"] = "x"
        with pytest.raises(TypeError):
            engine_config.spell_corrections["foo"] = "bar"

    def test_fallback_for_every_query_type(self, engine_config):
        from src.query_engine.models import QueryType

        for query_type in QueryType:
            assert engine_config.fallback_action(query_type)

    def test_compile_any_word_bounded(self):
        pattern = compile_any(["how to", "create"])

        assert pattern.search("how  to create")
        assert not pattern.search("created")
        assert not compile_any([]).search("anything")


class TestRuleOverrides:
    """JSON override files"""

    def test_override_merges_corrections(self, rules_file):
        path = rules_file({"rules_version": "test-1", "spell_corrections": {"cntrakt": "contract"}})
        config = load_engine_config(path)

        assert config.version == "test-1"
        assert config.spell_corrections["cntrakt"] == "contract"
        # base entries kept
        assert config.spell_corrections["cntract"] == "contract"

    def test_override_merges_keyword_weights(self):
        tables = merge_overrides(default_tables(), {"intent_keywords": {"parts_lookup": {"spares": 2.0}}})

        assert tables["intent_keywords"]["parts_lookup"]["spares"] == 2.0
        assert tables["intent_keywords"]["parts_lookup"]["parts"] == 3.0

    def test_override_merges_requested_attributes(self, rules_file):
        config = load_engine_config(rules_file({"requested_attributes": {"renewal date": "renewalDate"}}))
        attributes = dict(config.attribute_patterns)

        assert attributes["renewalDate"].search("show renewal date for contract 123456")
        assert attributes["effectiveDate"].search("effective date")

    def test_override_replaces_lists(self):
        tables = merge_overrides(default_tables(), {"creation_keywords": ["create"]})
        assert tables["creation_keywords"] == ["create"]

    def test_unknown_table(self, rules_file):
        with pytest.raises(RuleConfigError, match="Unknown rule table"):
            load_engine_config(rules_file({"no_such_table": {}}))

    def test_chained_corrections_rejected(self, rules_file):
        path = rules_file({"spell_corrections": {"foo": "bar", "bar": "baz"}})
        with pytest.raises(RuleConfigError, match="must not chain"):
            load_engine_config(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RuleConfigError):
            load_engine_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuleConfigError, match="Cannot read"):
            load_engine_config(tmp_path / "missing.json")

    def test_top_level_must_be_object(self, rules_file):
        with pytest.raises(RuleConfigError):
            load_engine_config(rules_file(["spell_corrections"]))


class TestRuleValidation:
    """Structural checks run before compiling"""

    def test_non_positive_weight(self):
        tables = merge_overrides(default_tables(), {"intent_keywords": {"help": {"assist": 0}}})
        with pytest.raises(RuleConfigError, match="must be positive"):
            build_engine_config(tables)

    def test_category_missing_priority(self):
        tables = merge_overrides(default_tables(), {"intent_keywords": {"billing": {"invoice": 1.0}}})
        with pytest.raises(RuleConfigError, match="category_priority"):
            build_engine_config(tables)

    def test_unknown_action(self):
        tables = merge_overrides(default_tables(), {"fallback_actions": {"CONTRACT": "contracts_everything"}})
        with pytest.raises(RuleConfigError, match="Unknown fallback action"):
            build_engine_config(tables)

    def test_unknown_query_type(self):
        tables = merge_overrides(default_tables(), {"action_table": {"BILLING": []}})
        with pytest.raises(RuleConfigError):
            build_engine_config(tables)

    def test_empty_requested_attribute(self):
        tables = merge_overrides(default_tables(), {"requested_attributes": {"renewal": ""}})
        with pytest.raises(RuleConfigError, match="Requested attribute for 'renewal'"):
            build_engine_config(tables)
