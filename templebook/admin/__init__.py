"""
Administration Module

Superuser operations for the Temple Visit Booking System:

- service.py: user listing, temple board approval and system statistics
- router.py: FastAPI endpoints, including the stale booking expiry sweep
- schemas.py: Pydantic models for admin requests and reports
"""

from .router import router
from .service import AdminService

__all__ = ["router", "AdminService"]
