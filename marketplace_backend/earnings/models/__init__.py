# earnings/models/__init__.py

"""
EARNINGS MODELS PACKAGE EXPORTS
"""

from .platform_earning import PlatformEarning
from .vendor_earning import VendorEarning

__all__ = [
    "VendorEarning",
    "PlatformEarning",
]
