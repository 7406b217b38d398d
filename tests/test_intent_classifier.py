"""
Tests for Stage 3: Intent Classification
"""

import pytest

from src.query_engine.models import ActionType, QueryType
from src.query_engine.stage3_intent_classifier import ActionResolver, IntentClassifier


class TestIntentClassifier:
    """Weighted keyword scoring and query type mapping"""

    @pytest.fixture
    def classifier(self, engine_config):
        return IntentClassifier(engine_config)

    def test_contract_lookup(self, classifier):
        result = classifier.classify("show contract 123456", {"contract_number": "123456"})

        assert result.query_type == QueryType.CONTRACT
        assert result.action_type == ActionType.CONTRACTS_BY_CONTRACT_NUMBER
        assert result.category == "contract_lookup"
        assert result.token_count == 3

    def test_tie_goes_to_priority(self, classifier):
        """status_check and contract_lookup tie; status_check ranks higher"""
        result = classifier.classify(
            "pull contracts created by vinod after 2020 before 2024 status expired",
            {"created_by": "vinod"},
        )

        assert result.category == "status_check"
        assert result.query_type == QueryType.CONTRACT
        assert result.action_type == ActionType.CONTRACTS_BY_USER

    def test_status_override(self, classifier):
        result = classifier.classify("expired contracts", {"status": "expired"})

        assert result.override == "status_check"
        assert result.query_type == QueryType.CONTRACT
        assert result.action_type == ActionType.CONTRACTS_BY_STATUS

    def test_customer_override_follows_parts_subject(self, classifier):
        """A customer query about parts is a PARTS query"""
        result = classifier.classify("parts for customer XYZ Inc", {"customer_name": "XYZ Inc"})

        assert result.override == "customer_info"
        assert result.query_type == QueryType.PARTS
        assert result.action_type == ActionType.PARTS_BY_CUSTOMER

    def test_help_query(self, classifier):
        result = classifier.classify("how to create a contract", {})

        assert result.query_type == QueryType.HELP
        assert result.action_type == ActionType.HELP_CONTRACT_CREATION

    def test_entity_fallback_category(self, classifier):
        """No keywords: the entities pick the category"""
        result = classifier.classify("AE125", {"part_number": "AE125"})

        assert result.category == "parts_lookup"
        assert result.query_type == QueryType.PARTS

    def test_unknown(self, classifier):
        result = classifier.classify("xyzzy plugh", {})

        assert result.query_type == QueryType.UNKNOWN
        assert result.action_type == ActionType.UNKNOWN
        assert result.base_confidence == 0.0
        assert result.scores == {}

    def test_scores_normalized(self, classifier):
        result = classifier.classify("list parts for contract 789012", {"contract_number": "789012"})

        assert sum(result.scores.values()) == pytest.approx(1.0, abs=1e-3)
        assert set(result.scores) == {"parts_lookup", "contract_lookup"}

    def test_whole_word_matching(self, classifier):
        """'created' does not count as the help keyword 'create'"""
        result = classifier.classify("contracts created in 2024", {"year": "2024"})
        assert "help" not in result.scores

    def test_deterministic(self, classifier):
        entities = {"created_by": "vinod"}
        first = classifier.classify("contracts by vinod", entities)
        second = classifier.classify("contracts by vinod", entities)
        assert first == second


class TestActionResolver:
    """Decision table lookup"""

    @pytest.fixture
    def resolver(self, engine_config):
        return ActionResolver(engine_config)

    def test_first_present_signal_wins(self, resolver):
        entities = {"created_by": "vinod", "contract_number": "123456"}
        action = resolver.resolve(QueryType.CONTRACT, entities, "contracts by vinod 123456")
        assert action == ActionType.CONTRACTS_BY_CONTRACT_NUMBER

    def test_account_routes_parts_to_customer(self, resolver):
        action = resolver.resolve(QueryType.PARTS, {"account_number": "100200300"}, "parts")
        assert action == ActionType.PARTS_BY_CUSTOMER

    def test_fallbacks(self, resolver):
        assert resolver.resolve(QueryType.CONTRACT, {}, "show") == ActionType.CONTRACTS_GENERAL
        assert resolver.resolve(QueryType.PARTS, {}, "parts") == ActionType.PARTS_GENERAL
        assert resolver.resolve(QueryType.HELP, {}, "help") == ActionType.HELP_GENERAL
        assert resolver.resolve(QueryType.UNKNOWN, {}, "") == ActionType.UNKNOWN

    def test_help_topics(self, resolver):
        assert resolver.resolve(QueryType.HELP, {}, "help with parts") == ActionType.HELP_PARTS_SEARCH
        assert resolver.signals({}, "new contract") == {"topic:contract"}
