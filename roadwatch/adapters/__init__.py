"""
Adapters for RoadWatch hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteReportRepository, FilePhotoStore, SQLiteOutbox
from .inference.client import InferenceClient
from .notify.mqtt_notifier import MqttReportNotifier

__all__ = ["SQLiteReportRepository", "FilePhotoStore", "SQLiteOutbox", "InferenceClient", "MqttReportNotifier"]
