"""FastAPI application backing the contract editor."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..contracts import create_mirror, create_primary, scan_contracts, sync_contract, write_contract_file
from ..errors import ConflictError, ValidationError
from ..logging import get_logger
from ..models import MIRROR_FILENAME, PRIMARY_FILENAME

_T = TypeVar("_T")

_LOGGER = get_logger("service")


class FileWriteRequest(BaseModel):
    path: str
    text: str


class FileWriteResponse(BaseModel):
    ok: bool
    path: str
    sha256: str


class SyncRequest(BaseModel):
    dir: str = "."


class SyncResponse(BaseModel):
    ok: bool
    dir: str
    status: str


class CreateRequest(BaseModel):
    dir: str = "."
    kind: str


class CreateResponse(BaseModel):
    ok: bool
    path: str


class ContractRow(BaseModel):
    dir: str
    md_path: Optional[str] = None
    md_text: Optional[str] = None
    md_hash: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    yaml_path: Optional[str] = None
    yaml_text: Optional[str] = None
    yaml_source_hash: Optional[str] = None
    status: str


class ContractsResponse(BaseModel):
    generated_at: str
    project_root: str
    contracts: List[ContractRow]


class HealthResponse(BaseModel):
    status: str


async def _run_blocking(func: Callable[[], _T]) -> _T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(project_root: str | Path) -> FastAPI:
    """Create the FastAPI application serving contracts under ``project_root``."""

    root = Path(project_root).expanduser().resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Project root not found: {project_root}")

    app = FastAPI(title="Contracts Service", version="1.0.0")
    app.state.project_root = root

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/api/contracts", response_model=ContractsResponse)
    async def list_contracts(drift: bool = False) -> Dict[str, Any]:
        index = await _run_blocking(lambda: scan_contracts(root))
        if drift:
            index = index.drift_only()
        return index.to_dict()

    @app.put("/api/file", response_model=FileWriteResponse)
    async def write_file(payload: FileWriteRequest) -> FileWriteResponse:
        result = await _run_blocking(lambda: write_contract_file(root, payload.path, payload.text))
        return FileWriteResponse(ok=True, path=result.path, sha256=result.sha256)

    @app.post("/api/sync", response_model=SyncResponse)
    async def sync(payload: SyncRequest) -> SyncResponse:
        status = await _run_blocking(lambda: sync_contract(root, payload.dir))
        return SyncResponse(ok=True, dir=payload.dir, status=status)

    @app.post("/api/create", response_model=CreateResponse, status_code=201)
    async def create(payload: CreateRequest) -> CreateResponse:
        if payload.kind == "md":
            creator = create_primary
        elif payload.kind == "yaml":
            creator = create_mirror
        else:
            raise ValidationError(
                f"Unknown kind '{payload.kind}'; expected 'md' ({PRIMARY_FILENAME}) or 'yaml' ({MIRROR_FILENAME})."
            )
        created = await _run_blocking(lambda: creator(root, payload.dir))
        return CreateResponse(ok=True, path=created.relative_to(root).as_posix())

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_: Any, exc: ValidationError) -> JSONResponse:
        _LOGGER.info("Rejected request: %s", exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def payload_error_handler(_: Any, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid body.", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(_: Any, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    return app


def run_service(
    project_root: str | Path = ".", host: str = "127.0.0.1", port: int = 8787
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(project_root)
    _LOGGER.info("Contracts service for %s on http://%s:%d/", app.state.project_root, host, port)
    uvicorn.run(app, host=host, port=port)
