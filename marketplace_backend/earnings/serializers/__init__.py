from .earning import (
    EarningsTrendPointSerializer,
    PlatformOverviewSerializer,
    VendorEarningSerializer,
)

__all__ = [
    "VendorEarningSerializer",
    "EarningsTrendPointSerializer",
    "PlatformOverviewSerializer",
]
