"""Exception hierarchy for document loading, normalization and generation."""


class ApiDocsError(Exception):
    """Base class for every error raised by apidocs."""


class DocumentParseError(ApiDocsError):
    """The input document could not be parsed or is structurally malformed."""


class DocumentLoadError(ApiDocsError):
    """The input document could not be fetched or read."""


class SchemaTreeError(ApiDocsError):
    """A schema could not be expanded into property rows."""


class CyclicSchemaError(SchemaTreeError):
    def __init__(self, trail: list[str]):
        self.trail = trail
        super().__init__("Cyclic schema reference at " + (".".join(trail) or "<root>"))


class SchemaTooDeepError(SchemaTreeError):
    def __init__(self, trail: list[str], max_depth: int):
        self.trail = trail
        self.max_depth = max_depth
        super().__init__(
            f"Schema nesting exceeds {max_depth} levels at " + (".".join(trail) or "<root>")
        )


class UnknownOperationError(ApiDocsError):
    """No operation matches the requested operation id."""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"Operation {operation_id!r} not found")
