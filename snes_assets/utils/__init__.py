"""
Utils package for the asset pipeline
Provides common validation helpers
"""

from .validation import ValidationError, Validators

__all__ = [
    "ValidationError",
    "Validators",
]
