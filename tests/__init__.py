"""
Contract Query Engine Test Suite
================================
Unit tests for each pipeline stage plus pipeline and API tests.

Test Layout:
- fixtures/: Reference queries and expected interpretations
- test_*.py: One module per stage, pipeline, rules and API

Usage:
    # Run all tests
    pytest tests/ -v

    # Skip API tests
    pytest tests/ -v -m "not integration"
"""
