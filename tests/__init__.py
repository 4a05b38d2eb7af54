"""
Test suite for the Inventory Risk Engine.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_risk_service.py -v
"""
