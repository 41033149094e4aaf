"""
GeoGuardian Core Package.

This package contains the core business logic of the application,
separated from the web layer: device identity, sessions, the capture
pipeline, the aggregation view and the export job.

ARCHITECTURE RULES:
- core/ modules may only import from:
  - Python standard library
  - utils/ (persistence adapters)
  - device/ (collaborator interfaces and services)
  - config, logging_config

- core/ modules MUST NOT import from:
  - web/ (no Flask dependencies)
  - flask, werkzeug, or any web-specific packages
"""

__all__ = [
    "aggregation_core",
    "app_context",
    "capture_core",
    "errors",
    "export_core",
    "identity_core",
    "models",
    "session_core",
]
