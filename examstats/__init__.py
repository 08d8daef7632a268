"""
Exam score analytics core.

Subject-level statistics, per-category (block) rankings and student lookups
over a mostly-static dataset of exam records, behind a Redis cache-aside layer.
"""

__version__ = '1.0.0'
