"""Resolver that substitutes loaded chunk values into documents."""

import hashlib
import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any, Optional, Pattern, Union

from ..chunks import ChunkLedger
from ..config import settings
from .models import CacheInfo, StructureTooDeepError
from .parser import PlaceholderParser, is_sequence

logger = logging.getLogger(__name__)

Fingerprint = tuple[str, str, frozenset]


class PlaceholderResolver:
    """
    Resolve placeholders against a :class:`ChunkLedger`.

    Results are cached under a fingerprint made of the document's structural
    digest, the ledger epoch and the ledger's set of loaded identifiers. Any
    newly loaded chunk changes the fingerprint, so stale entries are never
    served; they age out of the LRU instead.
    """

    def __init__(
        self,
        pattern: Optional[Union[str, Pattern]] = None,
        max_depth: Optional[int] = None,
        cache_size: Optional[int] = None,
    ):
        """
        Initialize the resolver.

        Args:
            pattern: Placeholder regex with exactly one capturing group
            max_depth: Nesting limit for document walks
            cache_size: Maximum cached results (0 disables caching)
        """
        self.parser = PlaceholderParser(pattern, max_depth)
        self.cache_size = settings.resolver_cache_size if cache_size is None else cache_size
        self._cache: OrderedDict[Fingerprint, Any] = OrderedDict()
        self._hits = 0
        self._misses = 0

    @property
    def max_depth(self) -> int:
        return self.parser.max_depth

    def is_placeholder(self, value: Any) -> bool:
        return self.parser.is_placeholder(value)

    def extract_identifier(self, value: Any) -> Optional[str]:
        return self.parser.extract_identifier(value)

    def find_all_identifiers(self, document: Any) -> set[str]:
        return self.parser.find_all_identifiers(document)

    def resolve_placeholders(
        self,
        document: Any,
        ledger: ChunkLedger,
        use_cache: bool = True,
    ) -> Any:
        """
        Return a copy of ``document`` with loaded placeholders replaced.

        Unloaded placeholders and other scalars pass through unchanged. Mapping
        keys are never touched and the input is never mutated. With caching, a
        repeated call for the same content and ledger state is served from the
        stored result. Its containers are rebuilt on every call, so mutating a
        returned value never leaks into later calls.

        Args:
            document: Nested mappings, sequences and scalars
            ledger: Ledger to look chunk values up in
            use_cache: Consult and populate the result cache

        Raises:
            StructureTooDeepError: If nesting exceeds ``max_depth``
        """
        if not use_cache or self.cache_size == 0:
            return self._resolve(document, ledger, 0)

        key = self.fingerprint(document, ledger)
        if key in self._cache:
            self._hits += 1
            self._cache.move_to_end(key)
            return self._copy_containers(document, self._cache[key])

        self._misses += 1
        resolved = self._resolve(document, ledger, 0)
        self._cache[key] = resolved
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return self._copy_containers(document, resolved)

    def fingerprint(self, document: Any, ledger: ChunkLedger) -> Fingerprint:
        """Cache key for resolving ``document`` against the ledger's current state."""
        digest = hashlib.sha256()
        self._digest(document, digest, 0)
        return (digest.hexdigest(), ledger.epoch, ledger.resolved_ids)

    def clear_cache(self) -> None:
        """Forget all cached results. Ledger state is unaffected."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        logger.debug("Resolver cache cleared")

    def cache_info(self) -> CacheInfo:
        return CacheInfo(
            hits=self._hits,
            misses=self._misses,
            size=len(self._cache),
            max_size=self.cache_size,
        )

    def _resolve(self, value: Any, ledger: ChunkLedger, depth: int) -> Any:
        if depth > self.max_depth:
            raise StructureTooDeepError(self.max_depth)

        if isinstance(value, str):
            chunk_id = self.parser.extract_identifier(value)
            if chunk_id is not None and ledger.is_resolved(chunk_id):
                return ledger.get_value_or_none(chunk_id)
            return value
        if isinstance(value, Mapping):
            return {key: self._resolve(item, ledger, depth + 1) for key, item in value.items()}
        if is_sequence(value):
            return [self._resolve(item, ledger, depth + 1) for item in value]
        return value

    def _copy_containers(self, template: Any, resolved: Any) -> Any:
        # Containers of the document are rebuilt; substituted chunk values are shared.
        if isinstance(template, Mapping):
            return {key: self._copy_containers(template[key], item) for key, item in resolved.items()}
        if is_sequence(template):
            return [self._copy_containers(part, item) for part, item in zip(template, resolved)]
        return resolved

    def _digest(self, value: Any, digest, depth: int) -> None:
        # Each node is tagged with its kind so that e.g. "1" and 1 differ.
        if depth > self.max_depth:
            raise StructureTooDeepError(self.max_depth)

        if isinstance(value, Mapping):
            digest.update(b"{%d" % len(value))
            for key, item in value.items():
                self._digest_scalar(key, digest)
                self._digest(item, digest, depth + 1)
            digest.update(b"}")
        elif is_sequence(value):
            digest.update(b"[%d" % len(value))
            for item in value:
                self._digest(item, digest, depth + 1)
            digest.update(b"]")
        else:
            self._digest_scalar(value, digest)

    @staticmethod
    def _digest_scalar(value: Any, digest) -> None:
        token = f"{type(value).__qualname__}:{value!r}".encode("utf-8", "surrogatepass")
        digest.update(b"%d:" % len(token))
        digest.update(token)
