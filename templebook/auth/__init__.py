"""
Accounts and caller identity.

Registration, password login issuing JWT bearer tokens, and the Principal /
Capability model that core booking operations check instead of comparing
role strings.
"""

from .principal import Principal, Capability
from .router import router

__all__ = ["router", "Principal", "Capability"]
