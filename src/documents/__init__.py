"""PDF transforms: watermarking and perusal derivation."""

from documents.perusal import derive_perusal
from documents.watermark import (
    LicenseInfo,
    WatermarkOptions,
    license_watermark,
    perusal_watermark,
    watermark,
)

__all__ = [
    "LicenseInfo",
    "WatermarkOptions",
    "derive_perusal",
    "license_watermark",
    "perusal_watermark",
    "watermark",
]
