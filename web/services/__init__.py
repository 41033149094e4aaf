"""
GeoGuardian Services Package.

This package contains service layer functions that encapsulate the work
behind each route, separating it from Flask for better testability.

ARCHITECTURE RULE:
- Services may ONLY import from core/* modules
- Services MUST NOT import directly from utils/, device/
"""

from web.services import records_service

__all__ = ["records_service"]
