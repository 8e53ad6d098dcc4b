"""Expand JSON-Schema-like objects into flat, displayable property rows."""
import logging
import re
from collections.abc import Mapping
from typing import Any

from .config import settings as default_settings
from .errors import CyclicSchemaError, SchemaTooDeepError
from .models import PropertyRow

logger = logging.getLogger(__name__)

REF_PREFIXES = ("#/components/schemas/", "#/definitions/")

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9_]+")


def _ref_name(schema: Any) -> str | None:
    ref = schema.get("$ref") if isinstance(schema, Mapping) else None
    if isinstance(ref, str) and ref:
        return ref.rsplit("/", 1)[-1]
    return None


class SchemaTreeBuilder:
    """Walks a schema depth-first and emits one ``PropertyRow`` per property.

    Rows come out in pre-order: a property is followed directly by the rows of
    its nested object (or of its array items, when those are objects), one
    level deeper. Each nested group gets an id built from ``id_prefix``, the
    dotted property trail and the level, used to wire expand/collapse state.

    The walker keeps the schemas on the current path and refuses to re-enter
    one (``CyclicSchemaError``) or to nest deeper than ``max_depth``
    (``SchemaTooDeepError``).
    """

    def __init__(
        self,
        schemas: Mapping[str, Any] | None = None,
        max_depth: int | None = None,
        id_prefix: str = "schema",
    ):
        self.schemas = schemas or {}
        self.max_depth = max_depth if max_depth is not None else default_settings.max_schema_depth
        self.id_prefix = id_prefix

    def expand(self, schema: Mapping[str, Any] | None, start_level: int = 1) -> list[PropertyRow]:
        rows: list[PropertyRow] = []
        if schema:
            self._walk(schema, start_level, [], set(), None, rows)
        return rows

    def resolve(self, schema: Any, trail: list[str] | None = None) -> Any:
        """Follow local ``$ref``s to the named schema. Unknown refs are returned as-is."""
        seen: set[str] = set()
        while isinstance(schema, Mapping) and isinstance(schema.get("$ref"), str):
            ref = schema["$ref"]
            if ref in seen:
                raise CyclicSchemaError(list(trail or []))
            seen.add(ref)
            if not ref.startswith(REF_PREFIXES):
                logger.warning("Unsupported schema reference %s", ref)
                return schema
            target = self.schemas.get(ref.rsplit("/", 1)[-1])
            if not isinstance(target, Mapping):
                logger.warning("Unresolved schema reference %s", ref)
                return schema
            schema = target
        return schema

    def _group_id(self, trail: list[str], level: int, kind: str) -> str:
        names = "-".join(_NON_ALNUM.sub("-", name) for name in trail)
        return f"{self.id_prefix}-{names}-{kind}-{level}"

    def _walk(
        self,
        schema: Any,
        level: int,
        trail: list[str],
        active: set[int],
        parent_group_id: str | None,
        rows: list[PropertyRow],
    ) -> None:
        resolved = self.resolve(schema, trail)
        if not isinstance(resolved, Mapping):
            return
        if id(resolved) in active:
            raise CyclicSchemaError(trail)
        if len(trail) >= self.max_depth:
            raise SchemaTooDeepError(trail, self.max_depth)

        properties = resolved.get("properties")
        if not isinstance(properties, Mapping):
            return
        required = resolved.get("required")
        required_set = set(required) if isinstance(required, (list, tuple, set)) else set()

        active.add(id(resolved))
        try:
            for name, prop in properties.items():
                self._emit(str(name), prop, name in required_set, level, trail, active, parent_group_id, rows)
        finally:
            active.discard(id(resolved))

    def _emit(
        self,
        name: str,
        prop: Any,
        required: bool,
        level: int,
        trail: list[str],
        active: set[int],
        parent_group_id: str | None,
        rows: list[PropertyRow],
    ) -> None:
        prop_trail = [*trail, name]
        resolved = self.resolve(prop, prop_trail)
        if not isinstance(resolved, Mapping):
            resolved = {}
        own = prop if isinstance(prop, Mapping) else {}

        row = PropertyRow(
            name=name,
            type=resolved.get("type") or _ref_name(own) or "string",
            required=required,
            description=own.get("description") or resolved.get("description") or "",
            level=level,
            parent_group_id=parent_group_id,
        )
        nested = resolved if isinstance(resolved.get("properties"), Mapping) and resolved["properties"] else None

        items = None
        if nested is None and resolved.get("type") == "array" and resolved.get("items"):
            items = self.resolve(resolved["items"], prop_trail)
            if isinstance(items, Mapping):
                row.array_note = f"Array of {items.get('type') or _ref_name(resolved['items']) or 'objects'}"
                if not (isinstance(items.get("properties"), Mapping) and items["properties"]):
                    items = None
            else:
                items = None

        if nested is not None:
            row.has_nested_properties = True
            row.group_id = self._group_id(prop_trail, level, "props")
        elif items is not None:
            row.is_array_of_objects = True
            row.group_id = self._group_id(prop_trail, level, "items")

        rows.append(row)
        if nested is not None:
            self._walk(nested, level + 1, prop_trail, active, row.group_id, rows)
        elif items is not None:
            self._walk(items, level + 1, prop_trail, active, row.group_id, rows)
