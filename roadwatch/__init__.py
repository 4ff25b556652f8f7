"""
RoadWatch - citizen road-damage reporting service.

Zone classification, photo-relative position estimation and the report
workflow for the Miahuatlán de Porfirio Díaz pothole registry.
"""

__version__ = "0.2.0"
