"""
WMS ROI Test Suite
==================

Test organization:
- tests/unit/                     - Auth helpers (no database)
- tests/services/roi_assessment/  - Service logic and HTTP routes against mongomock

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
"""
