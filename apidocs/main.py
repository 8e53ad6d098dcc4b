import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .assistant import AssistantClient
from .config import Settings, settings as default_settings
from .errors import ApiDocsError, UnknownOperationError
from .generator import EXPORT_FILENAME, DocumentationAssembler
from .loader import decode_document, fetch_document, read_document
from .try_it import TryItExecutor, build_request

logger = logging.getLogger(__name__)


class FetchRequest(BaseModel):
    url: str = Field(..., description="http(s) URL of a JSON or YAML API description")
    full_yaml: bool = Field(False, description="Parse YAML with a full YAML parser instead of the minimal one")


class EndpointRequest(BaseModel):
    path: str = Field(..., description="API path, e.g. /orders/{id}")
    method: str = Field(..., description="GET, POST, etc.")
    operation: dict = Field(default_factory=dict, description="Operation object (summary, parameters, requestBody, ...)")


class TryItRequest(BaseModel):
    operation_id: str = Field(..., description="Operation id as used in section anchors")
    values: dict[str, str] = Field(default_factory=dict, description="Parameter values by name")
    body: str | None = Field(None, description="Raw request body, sent verbatim")


class AssistantRequest(BaseModel):
    question: str = Field(..., description="Question about the documented API")


def _assembler(request: Request) -> DocumentationAssembler:
    return request.app.state.assembler


def _load_default_document(app: FastAPI) -> None:
    # Generate from the configured default document, if any. A bad default is logged, not fatal.
    s: Settings = app.state.settings
    try:
        if s.default_document_url:
            data = fetch_document(s.default_document_url, settings=s)
        elif s.default_document_path:
            data = read_document(s.default_document_path)
        else:
            return
    except ApiDocsError as e:
        logger.warning("Could not load default document: %s", e)
        return
    app.state.assembler.generate(data)


def create_app(settings: Settings | None = None) -> FastAPI:
    s = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _load_default_document(app)
        yield

    app = FastAPI(title="API Docs Generator", version="1.0.0", lifespan=lifespan)
    app.state.settings = s
    app.state.assembler = DocumentationAssembler(s)
    app.state.try_it = TryItExecutor(s)
    app.state.assistant = AssistantClient(s)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        # Health check for load balancers and platforms.
        return {"status": "ok"}

    @app.get("/api/docs")
    def get_docs(request: Request):
        output = _assembler(request).output
        if output is None:
            raise HTTPException(404, detail="No documentation generated yet")
        return output

    @app.post("/api/docs")
    async def post_docs(request: Request, full_yaml: bool = False):
        # Raw JSON or YAML document in the request body.
        assembler = _assembler(request)
        raw = await request.body()
        if full_yaml:
            try:
                raw = decode_document(raw.decode("utf-8", errors="replace"), is_yaml=True, full_yaml=True)
            except ApiDocsError as e:
                raise HTTPException(422, detail=str(e))
        output = assembler.generate(raw)
        if output is None:
            raise HTTPException(422, detail=assembler.last_error or "Could not generate documentation")
        return output

    @app.post("/api/docs/fetch")
    def fetch_docs(request: Request, body: FetchRequest):
        assembler = _assembler(request)
        try:
            data = fetch_document(body.url, full_yaml=body.full_yaml, settings=request.app.state.settings)
        except ApiDocsError as e:
            raise HTTPException(502, detail=str(e))
        output = assembler.generate(data)
        if output is None:
            raise HTTPException(422, detail=assembler.last_error or "Could not generate documentation")
        return output

    @app.get("/api/docs/export")
    def export_docs(request: Request):
        exported = _assembler(request).export()
        if not exported:
            raise HTTPException(404, detail="No configuration available")
        return Response(
            content=exported,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.post("/api/docs/endpoints")
    def add_endpoint(request: Request, body: EndpointRequest):
        assembler = _assembler(request)
        if assembler.config is None:
            raise HTTPException(404, detail="No configuration available")
        output = assembler.add_endpoint(body.path, body.method, body.operation)
        if output is None:
            raise HTTPException(422, detail=assembler.last_error or "Could not generate documentation")
        return output

    @app.get("/api/docs/operations/{operation_id}")
    def get_operation(request: Request, operation_id: str):
        try:
            section, panel = _assembler(request).find_operation(operation_id)
        except UnknownOperationError as e:
            raise HTTPException(404, detail=str(e))
        return {"section": section, "code_panel": panel}

    @app.post("/api/try-it")
    async def try_it(request: Request, body: TryItRequest):
        assembler = _assembler(request)
        if assembler.document is None or assembler.navigation is None:
            raise HTTPException(404, detail="No documentation generated yet")
        try:
            ref = assembler.navigation.resolve(body.operation_id)
            prepared = build_request(assembler.document, ref.path, ref.method, body.values, body.body)
        except UnknownOperationError as e:
            raise HTTPException(404, detail=str(e))
        result = await request.app.state.try_it.execute(prepared, widget=ref.operation_id)
        if result is None:
            raise HTTPException(409, detail="Superseded by a newer request for this operation")
        return {"request": prepared, "result": result}

    @app.post("/api/assistant")
    async def ask_assistant(request: Request, body: AssistantRequest):
        try:
            reply = await request.app.state.assistant.ask(body.question)
        except ValueError as e:
            raise HTTPException(400, detail=str(e))
        if reply is None:
            raise HTTPException(409, detail="Superseded by a newer question")
        return reply

    return app


app = create_app()
