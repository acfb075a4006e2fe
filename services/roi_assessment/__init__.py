"""
WMS ROI Assessment Service
==========================

REST API for running warehouse-management ROI assessments:
companies, assessments, questionnaires, ROI calculations,
recommendations, reports (with versioning), templates, settings
and audit logs.

Version: 0.1.0
"""
