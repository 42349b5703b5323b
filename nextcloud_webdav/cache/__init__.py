from .context import CacheContext, format_byte_count
from .disk import LISTING_INDEX_NAME, DiskCacheStore
from .keyed import KeyedCache
from .memory import MemoryCacheLayer
from .options import CacheCategory, CacheOptions
from .orchestrator import CachedResult, CacheSlot, cached_request
from .reconciler import CacheReconciler

__all__ = [
    "LISTING_INDEX_NAME",
    "CacheCategory",
    "CacheContext",
    "CacheOptions",
    "CacheReconciler",
    "CacheSlot",
    "CachedResult",
    "DiskCacheStore",
    "KeyedCache",
    "MemoryCacheLayer",
    "cached_request",
    "format_byte_count",
]
