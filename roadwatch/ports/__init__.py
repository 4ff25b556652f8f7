"""
Port interfaces for RoadWatch hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .repository import ReportRepositoryPort
from .photos import PhotoStorePort
from .inference import InferencePort
from .notify import NotifierPort

__all__ = ["ReportRepositoryPort", "PhotoStorePort", "InferencePort", "NotifierPort"]
