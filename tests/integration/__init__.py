"""
Integration tests for the ML Studio client.

These tests drive StudioContext end to end against an in-process fake of
the analysis service (see conftest.py): upload, analysis, session restore
across restarts, and behavior when the service is unreachable.

Run all integration tests:
    pytest tests/integration/ -v

Skip them:
    pytest -m "not integration"
"""
