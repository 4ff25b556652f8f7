"""
Observability for RoadWatch.

Logging, Prometheus metrics and the HTTP API surface.
"""
