"""Thin "try it" executor: sends a documented request and reports the raw outcome."""
import json
import logging
import re
import time
from collections.abc import Mapping
from urllib.parse import quote, urlencode, urlparse

import httpx
from pydantic import BaseModel

from .code_samples import TOKEN_PLACEHOLDER, has_request_body
from .config import Settings, settings as default_settings
from .errors import UnknownOperationError
from .models import Document
from .sequencer import RequestSequencer

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r"\{([^}]+)\}")


class PreparedRequest(BaseModel):
    method: str
    url: str
    headers: dict[str, str]
    body: str | None = None


class TryItResult(BaseModel):
    tag: int
    status: int | None = None
    reason: str = ""
    elapsed_ms: float = 0.0
    body: str = ""
    ok: bool = False
    error: str | None = None


def build_request(
    document: Document,
    path: str,
    method: str,
    values: Mapping[str, str] | None = None,
    body: str | None = None,
    token: str = TOKEN_PLACEHOLDER,
) -> PreparedRequest:
    """Fill the operation's URL template and headers from form values."""
    op = document.get_operation(path, method)
    if op is None:
        raise UnknownOperationError(f"{method.upper()} {path}")
    values = values or {}

    path_values = {p.name: values.get(p.name) for p in op.parameters if p.location == "path"}
    query = [(p.name, values[p.name]) for p in op.parameters if p.location == "query" and values.get(p.name)]
    headers = {"Content-Type": "application/json"}
    for p in op.parameters:
        if p.location == "header" and values.get(p.name):
            headers[p.name] = values[p.name]
    if document.has_auth:
        headers["Authorization"] = f"Bearer {token}"

    def fill(m: re.Match) -> str:
        value = path_values.get(m.group(1))
        return quote(value, safe="") if value else m.group(0)

    url = document.base_url + _PATH_PARAM.sub(fill, path)
    if query:
        url += "?" + urlencode(query, quote_via=quote)

    send_body = body if body and has_request_body(op, method) else None
    return PreparedRequest(method=method.upper(), url=url, headers=headers, body=send_body)


def _pretty(text: str) -> str:
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def _origin(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return ""


class TryItExecutor:
    """Executes prepared requests; responses superseded by a newer request on the same widget are dropped."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sequencer: RequestSequencer | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport
        self.sequencer = sequencer or RequestSequencer()

    async def execute(self, request: PreparedRequest, widget: str = "try-it") -> TryItResult | None:
        tag = self.sequencer.next(widget)
        result = await self._send(request, tag)
        if not self.sequencer.is_latest(widget, tag):
            logger.info("Discarding stale try-it response for %s (request %d)", widget, tag)
            return None
        return result

    async def _send(self, request: PreparedRequest, tag: int) -> TryItResult:
        allowed = self.settings.allowed_try_it_origins
        if allowed and _origin(request.url) not in allowed:
            return TryItResult(tag=tag, error=f"Error: origin of {request.url} is not allowed")

        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout, transport=self.transport) as client:
                r = await client.request(request.method, request.url, headers=request.headers, content=request.body)
        except httpx.HTTPError as e:
            logger.warning("Try-it request %s %s failed: %s", request.method, request.url, e)
            return TryItResult(tag=tag, error=f"Error: {e!s}")
        elapsed = (time.perf_counter() - start) * 1000
        return TryItResult(
            tag=tag,
            status=r.status_code,
            reason=r.reason_phrase,
            elapsed_ms=round(elapsed, 2),
            body=_pretty(r.text),
            ok=r.is_success,
        )
