# ECSign Test Suite
"""
Comprehensive test suite including:
- Unit tests
- Integration tests
- Security tests (tampering, malformed inputs)

Run with: pytest
Coverage: coverage run -m pytest && coverage report
"""
