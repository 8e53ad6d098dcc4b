"""Documentation generation pipeline.

``DocumentationAssembler`` takes a raw API description document and builds
the complete output model: intro sections, tag-grouped navigation,
per-operation content sections with parameter and schema trees, and code
panels with five-language samples.

Every pass rebuilds the model from scratch off-screen and only replaces the
previous output once the whole pass has succeeded.
"""
import copy
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .code_samples import CodeSampleRenderer, display_path, has_request_body, response_example
from .config import Settings, settings as default_settings
from .errors import DocumentParseError, UnknownOperationError
from .grouping import group_by_tag, iter_operations
from .models import (
    CodePanel,
    Document,
    DocumentationOutput,
    EndpointSection,
    IntroEntry,
    IntroSection,
    NavEntry,
    NavGroup,
    Navigation,
    Operation,
    ParameterRow,
    ServiceEntry,
    StatusCode,
    StatusGroup,
    TryItField,
    TryItForm,
    normalize,
    parse_document,
)
from .navigation import INTRO_IDS, NavigationModel, OperationRef
from .schema_tree import SchemaTreeBuilder
from .validation import validate

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "api-config.json"

INTRO_TITLES = {
    "introduction": "Introduction",
    "authentication": "Authentication",
    "base-url": "Base URL",
    "status-codes": "Status and error codes",
}

AUTH_DESCRIPTION = "All requests require authentication with a valid access token."
NO_AUTH_DESCRIPTION = "Authentication information not available."
STATUS_DESCRIPTION = (
    "Every API request returns an HTTP status code that can give more information about the response."
)

SUCCESS_CODES = [
    ("200", "OK", "The request succeeded. The requested resource was fetched and sent in the response body."),
    ("201", "Created", "The request succeeded and a new resource was created as a result."),
    ("204", "No Content", "The request succeeded but there is no content to return. Typically used for deletions."),
]

CLIENT_ERROR_CODES = [
    ("400", "Bad Request", "The request has invalid syntax or cannot be processed. Check the parameters sent."),
    ("401", "Unauthorized", "The client does not have valid authentication credentials. Check your access token."),
    ("403", "Forbidden", "The server refuses to respond. Typically caused by insufficient access permissions."),
    ("404", "Not Found", "The requested resource was not found but may be available again in the future."),
    (
        "422",
        "Unprocessable Entity",
        "The request body contains semantic errors. Typically caused by a wrong format, "
        "missing required fields, or logic errors.",
    ),
    ("429", "Too Many Requests", "The client has exceeded the rate limit. Wait before retrying."),
]


@dataclass
class GenerationContext:
    """Everything a generation pass needs, passed explicitly to each builder."""

    document: Document
    settings: Settings
    generation: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    warnings: list[str] = field(default_factory=list)

    @property
    def server_url(self) -> str:
        return self.document.base_url or self.settings.default_server_url

    @property
    def has_auth(self) -> bool:
        return self.document.has_auth


# --- Section builders ---


def build_intro_sections(ctx: GenerationContext) -> list[IntroSection]:
    doc = ctx.document
    return [
        IntroSection(
            id="introduction",
            title=INTRO_TITLES["introduction"],
            description=doc.info.description or "API documentation",
        ),
        IntroSection(
            id="authentication",
            title=INTRO_TITLES["authentication"],
            description=AUTH_DESCRIPTION if ctx.has_auth else NO_AUTH_DESCRIPTION,
        ),
        IntroSection(id="base-url", title=INTRO_TITLES["base-url"], base_url=ctx.server_url),
        IntroSection(
            id="status-codes",
            title=INTRO_TITLES["status-codes"],
            description=STATUS_DESCRIPTION,
            status_groups=[
                StatusGroup(
                    id="success-codes",
                    title="Success codes (2xx)",
                    codes=[StatusCode(code=c, title=t, description=d, kind="success") for c, t, d in SUCCESS_CODES],
                ),
                StatusGroup(
                    id="client-error-codes",
                    title="Client errors (4xx)",
                    codes=[StatusCode(code=c, title=t, description=d, kind="error") for c, t, d in CLIENT_ERROR_CODES],
                ),
            ],
        ),
    ]


def build_navigation(ctx: GenerationContext, nav: NavigationModel) -> Navigation:
    groups = []
    for tag, entries in group_by_tag(ctx.document.paths, ctx.settings.default_tag).items():
        groups.append(NavGroup(
            tag=tag,
            entries=[
                NavEntry(
                    operation_id=nav.ref(path, method).operation_id,
                    tag=tag,
                    label=op.summary or path,
                    method=method.upper(),
                    path=path,
                )
                for path, method, op in entries
            ],
        ))
    intro = [IntroEntry(id=intro_id, title=INTRO_TITLES[intro_id]) for intro_id in INTRO_IDS]
    return Navigation(intro=intro, groups=groups)


def build_endpoint_section(ctx: GenerationContext, ref: OperationRef, op: Operation) -> EndpointSection:
    method = ref.method.upper()
    parameters = [
        ParameterRow(
            name=p.name,
            location=p.location,
            type=p.type,
            required=p.required,
            description=p.description,
        )
        for p in op.parameters
    ]

    request_body = None
    if op.request_body is not None:
        builder = SchemaTreeBuilder(
            schemas=ctx.document.schemas,
            max_depth=ctx.settings.max_schema_depth,
            id_prefix=ref.operation_id,
        )
        request_body = builder.expand(op.request_body.json_schema, start_level=1)

    try_it = TryItForm(
        fields=[
            TryItField(name=p.name, location=p.location, required=p.required, placeholder=p.description)
            for p in op.parameters
        ],
        has_body=has_request_body(op, ref.method),
    )
    return EndpointSection(
        operation_id=ref.section_id,
        path=ref.path,
        method=method,
        title=op.summary or f"{method} {ref.path}",
        description=op.description,
        parameters=parameters,
        request_body=request_body,
        request_body_required=bool(op.request_body and op.request_body.required),
        try_it=try_it,
    )


def build_code_panel(ctx: GenerationContext, ref: OperationRef, op: Operation, renderer: CodeSampleRenderer) -> CodePanel:
    return CodePanel(
        operation_id=ref.operation_id,
        request_id=ref.request_id,
        response_id=ref.response_id,
        method=ref.method.upper(),
        path=ref.path,
        samples=renderer.render(op, ref.path, ref.method, ctx.server_url, ctx.has_auth),
        response_example=response_example(ctx.generated_at),
    )


def build_services(ctx: GenerationContext, nav: NavigationModel) -> list[ServiceEntry]:
    services = []
    for entries in group_by_tag(ctx.document.paths, ctx.settings.default_tag).values():
        for path, method, op in entries:
            services.append(ServiceEntry(
                operation_id=nav.ref(path, method).operation_id,
                label=op.summary or f"{method.upper()} {path}",
                method=method.upper(),
                display_path=display_path(path, op, ctx.document.schemas),
            ))
    return services


def build_output(ctx: GenerationContext, nav: NavigationModel | None = None) -> DocumentationOutput:
    """Build the complete documentation model for one generation pass."""
    doc = ctx.document
    nav = nav or NavigationModel(doc.paths)
    if nav.collisions:
        ctx.warnings.append(
            "Operation ids disambiguated with numeric suffixes: " + ", ".join(nav.collisions)
        )
    renderer = CodeSampleRenderer()

    sections = []
    code_panels = []
    for path, method, op in iter_operations(doc.paths):
        ref = nav.ref(path, method)
        sections.append(build_endpoint_section(ctx, ref, op))
        code_panels.append(build_code_panel(ctx, ref, op, renderer))

    return DocumentationOutput(
        title=doc.info.title,
        version=doc.info.version,
        base_url=ctx.server_url,
        intro_sections=build_intro_sections(ctx),
        navigation=build_navigation(ctx, nav),
        sections=sections,
        code_panels=code_panels,
        services=build_services(ctx, nav),
        warnings=list(ctx.warnings),
        generation=ctx.generation,
    )


class DocumentationAssembler:
    """Holds the last-loaded document and the last successfully generated output."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.config: dict | None = None
        self.document: Document | None = None
        self.output: DocumentationOutput | None = None
        self.navigation: NavigationModel | None = None
        self.last_error: str | None = None
        self._generation = 0

    def generate(self, raw: str | bytes | Mapping) -> DocumentationOutput | None:
        """Parse, validate and generate. Returns None (and keeps the previous output) on failure."""
        try:
            config = parse_document(raw)
            document = normalize(config, self.settings)
        except DocumentParseError as e:
            logger.error("Error parsing document: %s", e)
            self.last_error = str(e)
            return None

        result = validate(config)
        self._generation += 1
        ctx = GenerationContext(
            document=document,
            settings=self.settings,
            generation=self._generation,
            warnings=list(result.warnings),
        )
        try:
            navigation = NavigationModel(document.paths)
            output = build_output(ctx, navigation)
        except Exception as e:
            logger.exception("Error generating documentation")
            self.last_error = str(e)
            return None

        # Swap in the new pass only once it is complete.
        self.config = config
        self.document = document
        self.navigation = navigation
        self.output = output
        self.last_error = None
        logger.info(
            "Documentation generated: %d operations, %d warnings (pass %d)",
            len(output.sections), len(output.warnings), output.generation,
        )
        return output

    def regenerate(self) -> DocumentationOutput | None:
        if self.config is None:
            logger.error("No configuration available")
            return None
        return self.generate(self.config)

    def add_endpoint(self, path: str, method: str, operation: Mapping[str, Any]) -> DocumentationOutput | None:
        """Add (or replace) one operation in the held document and regenerate."""
        if self.config is None:
            logger.error("No configuration available")
            return None
        config = copy.deepcopy(self.config)
        paths = config.get("paths")
        if not isinstance(paths, dict):
            paths = config["paths"] = {}
        path_item = paths.get(path)
        if not isinstance(path_item, dict):
            path_item = paths[path] = {}
        path_item[method.lower()] = dict(operation)
        return self.generate(config)

    def find_operation(self, op_id: str) -> tuple[EndpointSection, CodePanel]:
        """Section and code panel for an operation id (deep links)."""
        if self.output is None or self.navigation is None:
            raise UnknownOperationError(op_id)
        ref = self.navigation.resolve(op_id)
        section = next(s for s in self.output.sections if s.operation_id == ref.operation_id)
        panel = next(p for p in self.output.code_panels if p.operation_id == ref.operation_id)
        return section, panel

    def export(self) -> str:
        """The held document as indented JSON, for download or clipboard."""
        if self.config is None:
            return ""
        return json.dumps(self.config, indent=2, ensure_ascii=False, default=str)
