"""coverproducts — annual land-cover products from change-detection results.

Example:
    >>> import coverproducts as cp
    >>>
    >>> request = cp.ChipRequest(cx=1484415, cy=2414805, tile="h05v02",
    ...                          dates=["2010-07-01", "2011-07-01"])
    >>> summary = cp.generate(request, config=cp.Config(storage_dir="/data/cover"))
    >>> summary.keys[0]
    'cover/h05v02/1484415/2414805/cover-h05v02-1484415-2414805-2010-07-01.json'
"""

from coverproducts.__about__ import __version__
from coverproducts.analysis import (
    change,
    characterize_segment,
    classify,
    confidence,
    get_class,
    landcover,
)
from coverproducts.config import Config, configure, get_default_config, load_config
from coverproducts.exceptions import (
    ConfigurationError,
    CoverProductsError,
    DataGenerationError,
    RetryExhaustedError,
    ServiceError,
    StorageError,
)
from coverproducts.generator import ChipRequest, ChipSummary, generate
from coverproducts.products import characterize_inputs, products
from coverproducts.service import AnalyticService
from coverproducts.storage import FileSystemStore, ObjectStore, product_path

__all__ = [
    # Version
    "__version__",
    # Chip generation
    "ChipRequest",
    "ChipSummary",
    "generate",
    # Pixel engine
    "change",
    "characterize_inputs",
    "characterize_segment",
    "classify",
    "confidence",
    "get_class",
    "landcover",
    "products",
    # Collaborators
    "AnalyticService",
    "FileSystemStore",
    "ObjectStore",
    "product_path",
    # Configuration
    "Config",
    "configure",
    "get_default_config",
    "load_config",
    # Exceptions
    "ConfigurationError",
    "CoverProductsError",
    "DataGenerationError",
    "RetryExhaustedError",
    "ServiceError",
    "StorageError",
]
