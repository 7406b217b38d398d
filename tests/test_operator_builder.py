"""
Tests for Stage 4: Operator Construction
"""

import pytest

from src.query_engine.models import Comparison, QueryOperator
from src.query_engine.stage4_operator_builder import OperatorBuilder


class TestOperatorBuilder:
    """Entities and phrases to typed comparison operators"""

    @pytest.fixture
    def builder(self, engine_config):
        return OperatorBuilder(engine_config)

    def test_filter_query_in_text_order(self, builder):
        operators = builder.build(
            {"created_by": "vinod"},
            "pull contracts created by vinod after 2020 before 2024 status expired",
        )

        assert [op.as_triple() for op in operators] == [
            ("created_by", Comparison.EQUALS, "vinod"),
            ("created_date", Comparison.GREATER_THAN, "2020-01-01"),
            ("created_date", Comparison.LESS_THAN, "2024-12-31"),
            ("status", Comparison.EQUALS, "expired"),
        ]

    def test_since_and_until(self, builder):
        operators = builder.build({}, "contracts since 2019 until 2022")

        assert [op.as_triple() for op in operators] == [
            ("created_date", Comparison.GREATER_THAN, "2019-01-01"),
            ("created_date", Comparison.LESS_THAN, "2022-12-31"),
        ]

    def test_between_sorted_bounds(self, builder):
        """Reversed years still give low..high"""
        (operator,) = builder.build({}, "contracts between 2021 and 2019")

        assert operator.comparison == Comparison.BETWEEN
        assert operator.value == ("2019-01-01", "2021-12-31")

    def test_year_entity(self, builder):
        (operator,) = builder.build({"year": "2024"}, "contracts created in 2024")
        assert operator.as_triple() == ("created_date", Comparison.BETWEEN, ("2024-01-01", "2024-12-31"))

    def test_status_entity(self, builder):
        (operator,) = builder.build({"status": "Expired"}, "Expired contracts")
        assert operator.as_triple() == ("status", Comparison.EQUALS, "expired")

    def test_status_clause_outside_vocabulary_ignored(self, builder):
        assert builder.build({}, "contracts with status unknown") == ()

    def test_scalar_entities(self, builder):
        operators = builder.build(
            {"account_number": "987654321", "contract_number": "123456"},
            "contract 123456 for account 987654321",
        )

        assert [op.field for op in operators] == ["contract_number", "account_number"]
        assert all(op.comparison == Comparison.EQUALS for op in operators)

    def test_no_operators(self, builder):
        assert builder.build({}, "help") == ()
        assert builder.build({}, "") == ()

    def test_operator_dict(self):
        operator = QueryOperator("created_date", Comparison.BETWEEN, ("2019-01-01", "2021-12-31"))

        assert operator.to_dict() == {
            "attribute": "created_date",
            "operation": "BETWEEN",
            "value": ["2019-01-01", "2021-12-31"],
        }
        assert QueryOperator("status", Comparison.EQUALS, "active").to_dict()["operation"] == "="
