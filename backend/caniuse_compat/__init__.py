"""
CanIUse Compatibility Engine

Reports whether web-platform features are usable on a browser target and
rolls the per-feature answers up into project-level compatibility scores.
"""

__version__ = "1.0.0"
