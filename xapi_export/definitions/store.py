"""
Definitions Store - Persists compiled definitions and decides when to rebuild them.

Features:
- JSON persistence (descriptors, column schemas, disabled endpoints)
- Atomic rewrite through a temporary file
- Staleness measured by age since the last compilation
- Single-writer refresh lock per store instance
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from xapi_export.errors import DefinitionsError

from .compiler import DEFAULT_API_PREFIX, EndpointCompiler
from .models import DefinitionSet
from .normalizer import PlaceholderNormalizer

logger = logging.getLogger(__name__)

SpecLoader = Callable[[], Dict[str, Any]]


def build_definitions(spec: Dict[str, Any], api_prefix: str = DEFAULT_API_PREFIX) -> DefinitionSet:
    """Compile and normalize a spec document"""
    definitions = EndpointCompiler(api_prefix=api_prefix).compile(spec)
    return PlaceholderNormalizer().normalize(definitions)


class DefinitionsStore:
    """
    File-backed definitions store

    Usage:
    ```python
    store = DefinitionsStore(Path("definitions.json"), max_age=3600)
    definitions = store.ensure_fresh(fetcher.fetch)
    descriptor = definitions.get_descriptor("CallHistoryView")
    ```
    """

    def __init__(self, path: Path, max_age: int = 3600, api_prefix: str = DEFAULT_API_PREFIX):
        self.path = Path(path)
        self.max_age = max_age
        self.api_prefix = api_prefix
        self._lock = threading.Lock()
        self._definitions: Optional[DefinitionSet] = None

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> DefinitionSet:
        """
        Load definitions from disk

        Raises:
            DefinitionsError: If the file is missing or unreadable
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            definitions = DefinitionSet.from_dict(data)
        except FileNotFoundError:
            raise DefinitionsError(f"Definitions file not found: {self.path}")
        except (OSError, ValueError, KeyError) as e:
            raise DefinitionsError(f"Could not read definitions from {self.path}: {e}")

        logger.debug(f"Loaded {len(definitions.descriptors)} endpoint definitions from {self.path}")
        self._definitions = definitions
        return definitions

    def save(self, definitions: DefinitionSet) -> None:
        """Atomically write definitions to disk"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".definitions-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(definitions.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise DefinitionsError(f"Could not write definitions to {self.path}: {e}")

        self._definitions = definitions
        logger.info(f"Saved {len(definitions.descriptors)} endpoint definitions to {self.path}")

    def is_stale(self, definitions: Optional[DefinitionSet] = None, now: Optional[datetime] = None) -> bool:
        """True when definitions are missing or older than the staleness window"""
        if definitions is None:
            if not self.exists():
                return True
            try:
                definitions = self.load()
            except DefinitionsError as e:
                logger.warning(f"Treating definitions as stale: {e}")
                return True

        age = definitions.age_seconds(now or datetime.now(timezone.utc))
        return age is None or age > self.max_age

    def refresh(self, loader: SpecLoader) -> DefinitionSet:
        """Fetch the OpenAPI document, recompile and persist, regardless of age"""
        with self._lock:
            return self._rebuild(loader)

    def ensure_fresh(self, loader: SpecLoader) -> DefinitionSet:
        """
        Return current definitions, rebuilding them when stale

        Args:
            loader: Callable returning the parsed OpenAPI document
        """
        with self._lock:
            definitions = None
            if self.exists():
                try:
                    definitions = self.load()
                except DefinitionsError as e:
                    logger.warning(str(e))

            if definitions is not None and not self.is_stale(definitions):
                logger.debug("Definitions are fresh")
                return definitions

            logger.info("Definitions are missing or stale, regenerating")
            return self._rebuild(loader)

    def _rebuild(self, loader: SpecLoader) -> DefinitionSet:
        spec = loader()
        definitions = build_definitions(spec, api_prefix=self.api_prefix)
        self.save(definitions)
        return definitions
