"""
Spec Fetcher - Downloads and parses the API's OpenAPI specification.

Features:
- Fetches swagger.yaml (or JSON) from the server
- Fallback to alternative specification locations
- Local file loading for offline compilation
- YAML and JSON parsing through PyYAML
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import yaml

from config import XapiConfig
from xapi_export.errors import DefinitionsError

logger = logging.getLogger(__name__)


def parse_spec_text(text: str, source: str = "<text>") -> Dict[str, Any]:
    """
    Parse an OpenAPI document (YAML is a superset of JSON)

    Raises:
        DefinitionsError: If the text is not a mapping with 'paths'
    """
    try:
        spec = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DefinitionsError(f"Invalid OpenAPI document from {source}: {e}")

    if not isinstance(spec, dict) or "paths" not in spec:
        raise DefinitionsError(f"OpenAPI document from {source} has no 'paths' section")
    return spec


def load_spec_file(path: Path) -> Dict[str, Any]:
    """Load an OpenAPI document from a local YAML/JSON file"""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DefinitionsError(f"Could not read spec file {path}: {e}")
    return parse_spec_text(text, source=str(path))


class SpecFetcher:
    """
    Fetches the OpenAPI specification from the API server

    Usage:
    ```python
    fetcher = SpecFetcher(app_config.xapi)
    spec = fetcher.fetch()
    print(f"Found {len(spec['paths'])} paths")
    ```
    """

    # Tried after the configured swagger path
    FALLBACK_PATHS = [
        "/xapi/v1/swagger.json",
        "/swagger.yaml",
        "/swagger.json",
    ]

    def __init__(self, config: XapiConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.verify = config.verify_ssl

    def candidate_urls(self) -> List[str]:
        base = self.config.base_url.rstrip("/")
        urls = [self.config.swagger_url]
        for path in self.FALLBACK_PATHS:
            url = f"{base}{path}"
            if url not in urls:
                urls.append(url)
        return urls

    def fetch(self) -> Dict[str, Any]:
        """
        Fetch and parse the specification

        Raises:
            DefinitionsError: If no location returns a valid document
        """
        errors = []
        for url in self.candidate_urls():
            try:
                logger.debug(f"Trying specification URL: {url}")
                response = self.session.get(url, timeout=self.config.timeout)
                response.raise_for_status()
                spec = parse_spec_text(response.text, source=url)
                logger.info(f"Fetched OpenAPI specification from {url} ({len(spec['paths'])} paths)")
                return spec
            except requests.exceptions.RequestException as e:
                logger.debug(f"Failed to fetch {url}: {e}")
                errors.append(f"{url}: {e}")
            except DefinitionsError as e:
                logger.warning(e.message)
                errors.append(e.message)

        raise DefinitionsError(
            f"Could not fetch OpenAPI specification from {self.config.base_url}. "
            f"Tried: {'; '.join(errors)}"
        )
