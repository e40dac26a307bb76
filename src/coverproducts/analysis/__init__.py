"""Per-pixel temporal classification engine."""

from coverproducts.analysis.burn_ratio import burn_ratio, normalized_burn_ratio
from coverproducts.analysis.classification import classify, get_class
from coverproducts.analysis.decisions import change, confidence, landcover
from coverproducts.analysis.segments import characterize_pixel, characterize_segment

__all__ = [
    "burn_ratio",
    "change",
    "characterize_pixel",
    "characterize_segment",
    "classify",
    "confidence",
    "get_class",
    "landcover",
    "normalized_burn_ratio",
]
