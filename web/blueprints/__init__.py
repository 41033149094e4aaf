"""
GeoGuardian Web Blueprints Package.

This package contains Flask Blueprints for modular route organization.
"""

from web.blueprints.admin import admin_bp

__all__ = ["admin_bp"]
