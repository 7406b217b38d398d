"""
API Tests for the Query Router

Tests for /api/v1/* endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from config.feature_flags import FeatureFlags, set_feature_flags
from src.api import query_router
from src.api.main import app
from src.query_engine import QueryPipeline


@pytest.fixture
def client(engine_config, monkeypatch):
    """Test client backed by a fresh pipeline with default rules"""
    monkeypatch.setattr(query_router, "QUERY_RULES_FILE", "")
    set_feature_flags(FeatureFlags())
    query_router.set_query_pipeline(QueryPipeline(config=engine_config, flags=FeatureFlags()))
    yield TestClient(app)
    query_router.set_query_pipeline(None)
    set_feature_flags(None)


class TestQueryEndpoints:
    """Query interpretation endpoints"""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Contract Query Engine API"

    def test_health(self, client):
        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["rules_version"] == "2024.4"
        assert data["spell_correction_enabled"] is True
        assert data["nlp_enrichment_enabled"] is False

    def test_query(self, client):
        response = client.post("/api/v1/query", json={
            "message": "pull contracts created by vinod after 2020 before 2024 status expired"
        })
        data = response.json()

        assert response.status_code == 200
        assert data["queryType"] == "CONTRACT"
        assert data["actionType"] == "contracts_by_user"
        assert data["created_by"] == "vinod"
        assert data["contract_number"] is None
        assert data["entities"][1] == {"attribute": "created_date", "operation": ">", "value": "2020-01-01"}

    def test_between_operator_serialized_as_list(self, client):
        data = client.post("/api/v1/query", json={"message": "contracts created in 2024"}).json()

        assert data["entities"] == [
            {"attribute": "created_date", "operation": "BETWEEN", "value": ["2024-01-01", "2024-12-31"]}
        ]
        assert data["enhancementApplied"] == "Past-tense detection applied"

    def test_requested_fields_from_text(self, client):
        data = client.post("/api/v1/query", json={
            "message": "effective date, expiration for contract 124563"
        }).json()

        assert data["contract_number"] == "124563"
        assert data["requestedFields"] == ["effectiveDate", "expirationDate"]

    def test_empty_query_is_result_not_error(self, client):
        response = client.post("/api/v1/query", json={"message": ""})
        data = response.json()

        assert response.status_code == 200
        assert data["route"] == "ERROR"
        assert data["confidence"] == 0.0
        assert data["message"]

    def test_parts_creation_violation(self, client):
        data = client.post("/api/v1/query", json={"message": "create new parts for contract 123456"}).json()

        assert data["route"] == "PARTS_CREATE_ERROR"
        assert data["businessRuleViolation"] == "Parts creation is not allowed in this system"

    def test_query_with_session(self, client):
        data = client.post("/api/v1/query", json={
            "message": "list parts for this contract",
            "session": {"contract_number": "789012"},
        }).json()

        assert data["actionType"] == "parts_by_contract"
        assert data["contract_number"] == "789012"

    def test_missing_message_rejected(self, client):
        assert client.post("/api/v1/query", json={}).status_code == 422

    def test_batch(self, client):
        response = client.post("/api/v1/query/batch", json={"messages": ["show contract 123456", "help"]})
        data = response.json()

        assert response.status_code == 200
        assert [d["route"] for d in data] == ["CONTRACT", "HELP"]

    def test_batch_too_large(self, client, monkeypatch):
        monkeypatch.setattr(query_router, "MAX_BATCH_SIZE", 2)
        response = client.post("/api/v1/query/batch", json={"messages": ["help"] * 3})

        assert response.status_code == 400
        assert "Batch too large" in response.json()["detail"]

    def test_suggestions(self, client):
        data = client.post("/api/v1/query/suggestions", json={"message": "show"}).json()

        assert data["suggestions"]
        assert data["similar_queries"]


class TestPipelineEndpoints:
    """Pipeline status and rule reload"""

    def test_status(self, client):
        client.post("/api/v1/query", json={"message": "help"})
        data = client.get("/api/v1/pipeline/status").json()

        assert data["rules_version"] == "2024.4"
        assert data["feature_flags"]["enable_result_cache"] is True
        assert data["performance"]["total_queries"] == 1

    def test_reload_default_rules(self, client):
        response = client.post("/api/v1/pipeline/reload")

        assert response.status_code == 200
        assert response.json() == {"status": "reloaded", "rules_version": "2024.4"}

    def test_reload_from_rules_file(self, client, rules_file, monkeypatch):
        path = rules_file({"rules_version": "api-1"})
        monkeypatch.setattr(query_router, "QUERY_RULES_FILE", str(path))

        assert client.post("/api/v1/pipeline/reload").json()["rules_version"] == "api-1"
        assert client.get("/api/v1/health").json()["rules_version"] == "api-1"

    def test_invalid_reload_rejected(self, client, rules_file, monkeypatch):
        path = rules_file({"spell_corrections": {"foo": "bar", "bar": "baz"}})
        monkeypatch.setattr(query_router, "QUERY_RULES_FILE", str(path))

        response = client.post("/api/v1/pipeline/reload")

        assert response.status_code == 400
        assert "must not chain" in response.json()["detail"]
        assert client.get("/api/v1/health").json()["rules_version"] == "2024.4"
