"""Data models for the input API description document and the generated docs.

The input side (``Document`` and friends) is normalized once at the boundary:
every optional field is explicit and display defaults are applied, so the
builders never probe the raw mapping. Schemas stay as raw mappings because the
schema walker detects cycles by object identity.

The output side (``DocumentationOutput`` and friends) is created fresh on every
generation pass and never mutated afterwards.
"""
import copy
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import Settings, settings as default_settings
from .errors import DocumentParseError
from .yaml_parser import parse_yaml

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
BODY_METHODS = ("post", "put", "patch")
JSON_MEDIA_TYPES = ("application/json", "application/json; charset=utf-8")


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # Explicit nulls fall back to the field default.
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data


# --- Input document ---


class Info(_Model):
    title: str = ""
    version: str = ""
    description: str = ""


class Server(_Model):
    url: str = ""
    description: str = ""


class Parameter(_Model):
    """A single operation parameter (path, query, header or cookie)."""

    name: str = ""
    location: str = Field("query", alias="in")
    required: bool = False
    schema_: dict = Field(default_factory=dict, alias="schema")
    declared_type: str = Field("", alias="type")
    description: str = ""

    @property
    def type(self) -> str:
        # OpenAPI 3 puts the type in the schema, Swagger 2 on the parameter itself.
        return self.schema_.get("type") or self.declared_type or "string"


class MediaType(_Model):
    schema_: dict | None = Field(None, alias="schema")


class RequestBody(_Model):
    required: bool = False
    description: str = ""
    content: dict[str, MediaType] = {}

    @property
    def json_schema(self) -> dict | None:
        # Only JSON bodies are documented.
        for media_type in JSON_MEDIA_TYPES:
            media = self.content.get(media_type)
            if media is not None and media.schema_:
                return media.schema_
        return None


class Operation(_Model):
    """One HTTP method handler on one path."""

    summary: str = ""
    description: str = ""
    tags: list[str] = []
    parameters: list[Parameter] = []
    request_body: RequestBody | None = Field(None, alias="requestBody")
    responses: dict[str, Any] = {}


def split_path_item(path_item: Any) -> tuple[dict[str, Any], list[str]]:
    # Return ({lowercase method: operation mapping}, [skipped keys]) for one path item.
    if not isinstance(path_item, Mapping):
        return {}, []
    operations: dict[str, Any] = {}
    skipped: list[str] = []
    for key, value in path_item.items():
        method = str(key).lower()
        if method in HTTP_METHODS and isinstance(value, Mapping):
            operations[method] = value
        else:
            skipped.append(str(key))
    return operations, skipped


def clean_paths(data: Mapping) -> dict:
    # Keep only HTTP operations under each path; drop a non-mapping paths section.
    paths = data.get("paths")
    if not isinstance(paths, Mapping):
        return {k: v for k, v in data.items() if k != "paths"}
    return {**data, "paths": {path: split_path_item(item)[0] for path, item in paths.items()}}


class Document(_Model):
    """Normalized API description document."""

    info: Info = Info()
    servers: list[Server] = []
    security: list[Any] = []
    paths: dict[str, dict[str, Operation]] = {}
    components: dict[str, Any] = {}
    definitions: dict[str, Any] = {}
    base_url: str = ""

    @model_validator(mode="before")
    @classmethod
    def keep_operations_only(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return clean_paths(data)

    @property
    def has_auth(self) -> bool:
        first = self.security[0] if self.security else None
        return isinstance(first, Mapping) and bool(first)

    @property
    def schemas(self) -> dict[str, Any]:
        # Named schemas for $ref resolution (OpenAPI 3 components or Swagger 2 definitions).
        named = dict(self.definitions)
        schemas = self.components.get("schemas")
        if isinstance(schemas, Mapping):
            named.update(schemas)
        return named

    def get_operation(self, path: str, method: str) -> Operation | None:
        return (self.paths.get(path) or {}).get(method.lower())


def parse_document(raw: str | bytes | Mapping) -> dict:
    """Turn raw input into a mapping: JSON text, minimal-YAML text, or a mapping as-is."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentParseError(f"Document is not valid UTF-8: {e}") from e
    if not isinstance(raw, str):
        raise DocumentParseError(f"Unsupported document type: {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise DocumentParseError("Document is empty")
    if text[0] in "{[":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DocumentParseError(f"Invalid JSON at line {e.lineno}: {e.msg}") from e
    else:
        data = parse_yaml(text)
        if not data:
            raise DocumentParseError("Document is neither JSON nor a YAML mapping")
    if not isinstance(data, dict):
        raise DocumentParseError("Document root must be a mapping")
    return data


MAX_REPAIRS = 1000


def _drop_at(data: Any, loc: tuple) -> bool:
    # Delete the value at an error location so the field falls back to its default.
    try:
        parent = data
        for key in loc[:-1]:
            parent = parent[key]
        del parent[loc[-1]]
    except (KeyError, IndexError, TypeError):
        return False
    return True


def validate_document(data: Mapping) -> tuple[Document, list[str]]:
    """Validate a parsed document, dropping values whose shape does not fit.

    A list field holding a mapping (what the minimal YAML reader makes of a
    block sequence), a scalar where a mapping belongs, a bad list item: each
    is removed from a working copy and reported, and its field takes the
    default. The caller's mapping is left untouched.
    """
    work = clean_paths(copy.deepcopy(dict(data)))
    repairs: list[str] = []
    for _ in range(MAX_REPAIRS):
        try:
            return Document.model_validate(work), repairs
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first["loc"])
            if not _drop_at(work, first["loc"]):
                raise DocumentParseError(f"Malformed document at {where}: {first['msg']}") from e
            repairs.append(f"Ignoring {where}: {first['msg']}")
    raise DocumentParseError("Too many malformed values in document")


def normalize(raw: str | bytes | Mapping, settings: Settings | None = None) -> Document:
    """Parse and normalize raw input into a fully populated Document."""
    s = settings or default_settings
    doc, repairs = validate_document(parse_document(raw))
    for repair in repairs:
        logger.debug("%s", repair)

    info = Info(
        title=doc.info.title or s.default_title,
        version=doc.info.version or s.default_version,
        description=doc.info.description,
    )
    base_url = (doc.servers[0].url if doc.servers else "") or s.default_server_url
    return doc.model_copy(update={"info": info, "base_url": base_url})


# --- Generated documentation ---


class IntroEntry(BaseModel):
    id: str
    title: str


class NavEntry(BaseModel):
    operation_id: str
    tag: str
    label: str
    method: str
    path: str


class NavGroup(BaseModel):
    tag: str
    entries: list[NavEntry]


class Navigation(BaseModel):
    intro: list[IntroEntry]
    groups: list[NavGroup]


class PropertyRow(BaseModel):
    name: str
    type: str = "string"
    required: bool = False
    description: str = ""
    level: int = 1
    has_nested_properties: bool = False
    is_array_of_objects: bool = False
    array_note: str | None = None
    group_id: str | None = None
    parent_group_id: str | None = None


class ParameterRow(BaseModel):
    name: str
    location: str
    type: str = "string"
    required: bool = False
    description: str = ""


class TryItField(BaseModel):
    name: str
    location: str
    required: bool = False
    placeholder: str = ""


class TryItForm(BaseModel):
    fields: list[TryItField]
    has_body: bool = False


class EndpointSection(BaseModel):
    operation_id: str
    path: str
    method: str
    title: str
    description: str = ""
    parameters: list[ParameterRow] = []
    request_body: list[PropertyRow] | None = None
    request_body_required: bool = False
    try_it: TryItForm


class CodeSamples(BaseModel):
    curl: str
    js: str
    python: str
    go: str
    node: str


class CodePanel(BaseModel):
    operation_id: str
    request_id: str
    response_id: str
    method: str
    path: str
    samples: CodeSamples
    response_example: str


class ServiceEntry(BaseModel):
    operation_id: str
    label: str
    method: str
    display_path: str


class StatusCode(BaseModel):
    code: str
    title: str
    description: str
    kind: str  # success / error


class StatusGroup(BaseModel):
    id: str
    title: str
    codes: list[StatusCode]


class IntroSection(BaseModel):
    id: str
    title: str
    description: str = ""
    base_url: str | None = None
    status_groups: list[StatusGroup] = []


class DocumentationOutput(BaseModel):
    title: str
    version: str
    base_url: str
    intro_sections: list[IntroSection]
    navigation: Navigation
    sections: list[EndpointSection]
    code_panels: list[CodePanel]
    services: list[ServiceEntry]
    warnings: list[str] = []
    generation: int = 0
