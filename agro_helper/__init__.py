"""
Agro Helper: advisory backend and form client for agronomy assistance.
"""

__version__ = "1.0.0"
