"""Load API description documents from a URL or a local file."""
import logging
from pathlib import Path
from urllib.parse import urlparse

import httpx
import yaml

from .config import Settings, settings as default_settings
from .errors import DocumentLoadError, DocumentParseError
from .models import parse_document

logger = logging.getLogger(__name__)

# Accept header: prefer JSON, allow YAML for content negotiation
DOCUMENT_ACCEPT = (
    "application/json, application/vnd.oai.openapi+json, "
    "application/yaml, application/vnd.oai.openapi, text/yaml, */*"
)

YAML_SUFFIXES = (".yaml", ".yml")


def _is_yaml(name: str, content_type: str = "") -> bool:
    if "json" in content_type:
        return False
    return "yaml" in content_type or name.lower().endswith(YAML_SUFFIXES)


def decode_document(text: str, is_yaml: bool = False, full_yaml: bool = False) -> dict:
    """Text to mapping. ``full_yaml`` routes YAML through PyYAML instead of the minimal parser."""
    if not (is_yaml and full_yaml):
        return parse_document(text)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise DocumentParseError("Document root must be a mapping")
    return data


def fetch_document(
    url: str,
    full_yaml: bool = False,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict:
    # Fetch a JSON or YAML document over http(s). The content type decides the decoder, then the extension.
    s = settings or default_settings
    url = url.strip()
    if urlparse(url).scheme not in ("http", "https"):
        raise DocumentLoadError("Document URL must be http or https")

    try:
        with httpx.Client(timeout=s.request_timeout, transport=transport) as client:
            r = client.get(url, headers={"Accept": DOCUMENT_ACCEPT})
            r.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise DocumentLoadError(f"Could not fetch document: {e.response.status_code} from {url}") from e
    except httpx.RequestError as e:
        raise DocumentLoadError(f"Could not fetch document (check URL and network): {e!s}") from e

    content_type = (r.headers.get("content-type") or "").split(";")[0].strip().lower()
    logger.info("Fetched document from %s (%s, %d bytes)", url, content_type or "no content type", len(r.content))
    return decode_document(r.text, _is_yaml(urlparse(url).path, content_type), full_yaml)


def read_document(path: str | Path, full_yaml: bool = False) -> dict:
    """Read a JSON or YAML document from disk."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentLoadError(f"Could not read document {p}: {e}") from e
    return decode_document(text, _is_yaml(p.name), full_yaml)
