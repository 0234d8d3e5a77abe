"""Temple and time-slot directory read by booking admission control."""

from .router import router
from .service import TempleService

__all__ = ["router", "TempleService"]
