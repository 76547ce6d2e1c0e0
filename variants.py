import cv2
from dataclasses import dataclass
from typing import List, Optional

"""
Catalogs of resizing variants.
A scaler variant lets ffmpeg downscale while extracting frames (sws_flags).
An interpolation variant extracts full size frames and resizes them with OpenCV.
"""

SCALER = "scaler"
INTERPOLATION = "interpolation"

@dataclass(frozen=True)
class Variant:
    name: str
    kind: str
    interpolation: Optional[int] = None  # cv2 INTER_* flag for interpolation variants

    @property
    def output_name(self) -> str:
        return f"output-{self.name}.piwo7"

# https://ffmpeg.org/ffmpeg-scaler.html#toc-Scaler-Options
SCALER_ALGORITHMS = [
    "fast_bilinear",
    "bilinear",
    "bicubic",
    "experimental",
    "neighbor",
    "area",
    "bicublin",
    "gauss",
    "sinc",
    "lanczos",
    "spline",
]

# INTER_MAX and the WARP_* flags are not resize methods
INTERPOLATION_METHODS = [
    ("nearest", cv2.INTER_NEAREST),
    ("linear", cv2.INTER_LINEAR),
    ("cubic", cv2.INTER_CUBIC),
    ("area", cv2.INTER_AREA),
    ("lanczos4", cv2.INTER_LANCZOS4),
    ("linear_exact", cv2.INTER_LINEAR_EXACT),
    ("nearest_exact", cv2.INTER_NEAREST_EXACT),
]

SCALER_CATALOG = [Variant(name, SCALER) for name in SCALER_ALGORITHMS]
INTERPOLATION_CATALOG = [Variant(name, INTERPOLATION, flag) for name, flag in INTERPOLATION_METHODS]

CATALOGS = {
    SCALER: SCALER_CATALOG,
    INTERPOLATION: INTERPOLATION_CATALOG,
}

def get_catalog(name: str, only: Optional[List[str]] = None) -> List[Variant]:
    """Return a catalog in its fixed order, optionally restricted to some variant names."""
    if name not in CATALOGS:
        raise ValueError(f"Unknown catalog {name!r}, expected one of {sorted(CATALOGS)}")
    catalog = CATALOGS[name]
    if not only:
        return list(catalog)
    known = {v.name for v in catalog}
    unknown = [n for n in only if n not in known]
    if unknown:
        raise ValueError(f"Unknown {name} variants: {', '.join(unknown)}")
    return [v for v in catalog if v.name in only]
