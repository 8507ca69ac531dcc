"""Process-wide substance registry.

The registry owns the built-in catalog, loaded once on first access, and the
substances registered at runtime. An external store may take over runtime
registrations.

Example:
    >>> from opensubstances.registry import get_registry
    >>> get_registry().get_substance("water").name
    'Water'
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Iterator, MutableMapping, Optional

from .config import get_settings
from .errors import SubstanceNotFoundError
from .substances import Substance

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[], Iterable[Substance]]


def _default_loader() -> Iterable[Substance]:
    from .catalog import load_catalog

    return load_catalog()


class SubstanceRegistry:
    """Thread-safe lookup table from id to substance.

    Parameters:
        store: Optional external mapping receiving runtime registrations.
        always_use_store: Consult only the store, never the built-in catalog.
            Defaults to the ``OPENSUBSTANCES_ALWAYS_USE_STORE`` setting.
        loader: Callable producing the built-in catalog.
    """

    def __init__(
        self,
        store: Optional[MutableMapping[str, Substance]] = None,
        always_use_store: Optional[bool] = None,
        loader: Optional[CatalogLoader] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._initialized = False
        self._catalog: dict[str, Substance] = {}
        self._entries: dict[str, Substance] = {}
        self._store = store
        self._always_use_store = get_settings().always_use_store if always_use_store is None else always_use_store
        self._loader = loader or _default_loader

    @property
    def store(self) -> Optional[MutableMapping[str, Substance]]:
        return self._store

    def ensure_initialized(self) -> None:
        """Load the built-in catalog exactly once."""
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            for substance in self._loader():
                self._catalog[substance.id] = substance
            self._initialized = True
        logger.info("Loaded %d catalog substances", len(self._catalog))

    def register(self, substance: Substance) -> Substance:
        """Add or replace a runtime substance and return it."""
        with self._lock:
            target = self._entries if self._store is None else self._store
            target[substance.id] = substance
        logger.debug("Registered %s %s (%s)", substance.type_name, substance.id, substance.name)
        return substance

    def try_get_substance(self, id: str, kind: Optional[type] = None) -> Optional[Substance]:
        """Return the substance with the given id, or None.

        Returns None for the empty id, for unknown ids and when the substance is
        not an instance of ``kind``.
        """
        if not id:
            return None
        self.ensure_initialized()
        found = None if self._always_use_store else self._catalog.get(id)
        if found is None:
            found = self._entries.get(id)
        if found is None and self._store is not None:
            found = self._store.get(id)
        if found is None or (kind is not None and not isinstance(found, kind)):
            return None
        return found

    def get_substance(self, id: str) -> Substance:
        found = self.try_get_substance(id)
        if found is None:
            raise SubstanceNotFoundError(id)
        return found

    def get_all(self) -> list[Substance]:
        return list(self._iter_all())

    def ids(self) -> list[str]:
        return [substance.id for substance in self._iter_all()]

    def resolve(self, name_or_id: str) -> Optional[Substance]:
        """Look a substance up by id, then by name or common name (case-insensitive)."""
        found = self.try_get_substance(name_or_id)
        if found is not None:
            return found
        wanted = name_or_id.strip().casefold()
        for substance in self._iter_all():
            names = (substance.name, *substance.common_names)
            if any(name.casefold() == wanted for name in names):
                return substance
        return None

    def _iter_all(self) -> Iterator[Substance]:
        self.ensure_initialized()
        seen: set[str] = set()
        sources: list[Iterable[Substance]] = []
        if not self._always_use_store:
            sources.append(list(self._catalog.values()))
        sources.append(list(self._entries.values()))
        if self._store is not None:
            sources.append(list(self._store.values()))
        for source in sources:
            for substance in source:
                if substance.id not in seen:
                    seen.add(substance.id)
                    yield substance

    def __contains__(self, id: object) -> bool:
        return isinstance(id, str) and self.try_get_substance(id) is not None

    def __len__(self) -> int:
        return len(self.ids())


_DEFAULT_REGISTRY: Optional[SubstanceRegistry] = None
_DEFAULT_LOCK = threading.Lock()


def get_registry() -> SubstanceRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_REGISTRY is None:
                _DEFAULT_REGISTRY = SubstanceRegistry()
    return _DEFAULT_REGISTRY


def set_registry(registry: Optional[SubstanceRegistry]) -> Optional[SubstanceRegistry]:
    """Replace the process-wide registry and return the previous one.

    Passing None makes the next ``get_registry()`` call build a fresh default.
    """
    global _DEFAULT_REGISTRY
    with _DEFAULT_LOCK:
        previous, _DEFAULT_REGISTRY = _DEFAULT_REGISTRY, registry
    return previous
