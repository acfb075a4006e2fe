"""
WMS ROI Services
================

Services:
- roi_assessment: assessments, ROI calculations, recommendations and reports
"""

__all__ = [
    "roi_assessment",
]
