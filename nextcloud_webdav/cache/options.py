from enum import Enum, Flag


class CacheOptions(Flag):
    """Per-call caching policy.

    **Default behavior** (empty set): if there is a cached result, return that instead of
    making a request. Otherwise, make a request and cache the result.
    """

    NONE = 0
    #: Do not cache the result of this request, if one is made.
    DO_NOT_CACHE_RESULT = 1 << 0
    #: Remove the cached value for this request.
    REMOVE_EXISTING_CACHE = 1 << 1
    #: If there is a cached result, ignore it and make a request.
    DO_NOT_RETURN_CACHED_RESULT = 1 << 2
    #: If there is a cached result, return it, then make a request and return that
    #: result again if it is different.
    REQUEST_EVEN_IF_CACHED = 1 << 3

    #: Disable all caching for this request, including deleting any existing cache.
    DISABLE_CACHE = DO_NOT_CACHE_RESULT | REMOVE_EXISTING_CACHE | DO_NOT_RETURN_CACHED_RESULT
    #: Ignore the cached result if there is one, and don't cache the new result.
    IGNORE_CACHE = DO_NOT_CACHE_RESULT | DO_NOT_RETURN_CACHED_RESULT


class CacheCategory(Enum):
    """The four cache tables."""

    FILES = "files"
    DATA = "data"
    IMAGE = "image"
    THUMBNAIL = "thumbnail"
