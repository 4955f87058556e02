"""
Classification: turning frame samples into Classification verdicts.
"""

from .backend import ClassificationService
from .adapter import ClassifierAdapter
from .http_service import HttpClassificationService, HttpServiceConfig

__all__ = [
    "ClassificationService",
    "ClassifierAdapter",
    "HttpClassificationService",
    "HttpServiceConfig",
]
