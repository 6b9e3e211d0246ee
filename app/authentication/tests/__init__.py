"""
Tests for authentication app.

This package contains test modules for:
- test_managers.py: UserManager tests (creation, ensure_exists)

Usage:
    pytest authentication/tests/
"""
