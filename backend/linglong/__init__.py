"""Linglong Fu - AI-narrated detective game backend"""

__version__ = "0.1.0"
