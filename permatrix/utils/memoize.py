# permatrix/utils/memoize.py

import functools
import inspect
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

from permatrix.config.defaults import default, logger
from permatrix.utils.value_hash import get_value_hash


class BoundedMemoizer:
    """
    Least-recently-used cache around a pure function.

    The cache key is the content hash of the call arguments after binding
    them to the function signature (defaults applied), so ``f("a")`` and
    ``f("a", False)`` hit the same entry when ``False`` is the default.

    Capacity is the only eviction trigger; there is no expiry.  The wrapped
    function must be referentially transparent: its result is returned
    as-is on every hit.
    """

    def __init__(self, func: Callable[..., Any], max_size: Optional[int] = None):
        if max_size is None:
            max_size = default.MEMOIZE_MAX_SIZE
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.func = func
        self.max_size = max_size
        self._cache: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

        try:
            self._signature: Optional[inspect.Signature] = inspect.signature(func)
        except (TypeError, ValueError):
            self._signature = None

        functools.update_wrapper(self, func)

    def _make_key(self, args: tuple, kwargs: Dict[str, Any]) -> str:
        if self._signature is not None:
            try:
                bound = self._signature.bind(*args, **kwargs)
            except TypeError:
                # Let the real call raise the argument error.
                return get_value_hash([list(args), kwargs])
            bound.apply_defaults()
            return get_value_hash(list(bound.arguments.values()))
        return get_value_hash([list(args), kwargs])

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        key = self._make_key(args, kwargs)

        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                return self._cache[key]

            result = self.func(*args, **kwargs)
            self._misses += 1

            self._cache[key] = result
            if len(self._cache) > self.max_size:
                evicted, _ = self._cache.popitem(last=False)
                name = getattr(self.func, "__name__", repr(self.func))
                logger.debug(f"[memoize] {name}: evicted {evicted[:12]}")
            return result

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def cache_info(self) -> Dict[str, int]:
        """Return hit/miss counters together with current and maximum size."""
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "max_size": self.max_size,
                "size": len(self._cache),
            }


def memoize(max_size: Optional[int] = None) -> Callable[[Callable[..., Any]], BoundedMemoizer]:
    """Decorator form of :class:`BoundedMemoizer`."""

    def decorator(func: Callable[..., Any]) -> BoundedMemoizer:
        return BoundedMemoizer(func, max_size=max_size)

    return decorator
