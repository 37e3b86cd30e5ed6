"""
Test Suite

Structure:
- tests/unit/: Tests for individual components (schemas, decoding, reconciliation,
  normalization, pagination, transports, the exchange façade and the HTTP app)

Uses pytest with pytest-asyncio for testing async functionality. No test
talks to Gate.io: transports are exercised with mocked sessions, and the
façade with fake collaborators from tests/unit/conftest.py.
"""
