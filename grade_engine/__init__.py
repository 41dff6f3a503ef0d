"""
Grade Engine - weighted gradebook aggregation and exam auto-grading.

This package computes weighted final grades per student per course,
auto-grades objective exam questions, keeps exam scores synchronized
with their gradebook columns, and reconciles duplicate grade records.
"""

__version__ = "1.0.0"
__author__ = "Grade Engine Team"
