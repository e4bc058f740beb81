"""Tutorhub: AI tutoring backend for lectures and practice tasks."""

__version__ = "0.1.0"
