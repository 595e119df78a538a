"""
AI Engine Test Suite
====================

Run all tests:
    pytest tests/ -v

Run with coverage:
    pytest tests/ --cov=ai_engine --cov-report=html

Security note: These tests use fake transports and credential
stores and do not require real API keys.
"""
