"""Evaluate compiled context expressions against an active flag set."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import AbstractSet, Iterable, Optional, Tuple, Union

from ..config.constants import DEFAULT_EVAL_CACHE_SIZE
from .context import ContextFlag
from .expression import And, Expr, Flag, Not, Or

FlagLike = Union[ContextFlag, str]


def active_names(active: Optional[Iterable[FlagLike]]) -> frozenset:
    """Normalize an active set to plain flag names."""
    if not active:
        return frozenset()
    return frozenset(f.value if isinstance(f, ContextFlag) else str(f) for f in active)


def evaluate(expr: Optional[Expr], active: Optional[Iterable[FlagLike]]) -> bool:
    """
    Evaluate an expression with short-circuit semantics.

    An absent expression (None) is an unconditional binding and is always true.
    """
    if expr is None:
        return True
    return _eval(expr, active_names(active))


def _eval(expr: Expr, names: AbstractSet[str]) -> bool:
    if isinstance(expr, Flag):
        return expr.name in names
    if isinstance(expr, Not):
        return not _eval(expr.operand, names)
    if isinstance(expr, And):
        return _eval(expr.left, names) and _eval(expr.right, names)
    if isinstance(expr, Or):
        return _eval(expr.left, names) or _eval(expr.right, names)
    raise TypeError(f"Not a context expression: {expr!r}")


class CachedEvaluator:
    """
    Memoizing evaluator keyed on (expression, active set).

    Expressions are frozen dataclasses, so structurally equal trees share a
    cache entry. The cache is bounded and evicts least recently used pairs.
    A lock guards the cache so concurrent resolvers can share one instance.
    """

    def __init__(self, maxsize: int = DEFAULT_EVAL_CACHE_SIZE):
        self.maxsize = maxsize
        self._cache: "OrderedDict[Tuple[Expr, frozenset], bool]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()

    def __call__(self, expr: Optional[Expr], active: Optional[Iterable[FlagLike]]) -> bool:
        if expr is None:
            return True
        key = (expr, active_names(active))
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.hits += 1
                self._cache.move_to_end(key)
                return cached
            self.misses += 1
            result = _eval(expr, key[1])
            self._cache[key] = result
            if len(self._cache) > self.maxsize:
                self._cache.popitem(last=False)
            return result

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0
