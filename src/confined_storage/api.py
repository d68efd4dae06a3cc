"""FastAPI application exposing the confined storage operations."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, Response, UploadFile, status
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import Settings, get_settings
from .storage import EntryKind, ErrorKind, FileStorage, StorageError

logger = logging.getLogger(__name__)

app = FastAPI(title="Confined Storage", version=__version__)

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STATE: status.HTTP_409_CONFLICT,
    ErrorKind.IO: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class PathResponse(BaseModel):
    path: str


class CreateDirectoryRequest(BaseModel):
    path: str = Field(..., description="Directory path relative to the storage root.")


class TransferRequest(BaseModel):
    source: str = Field(..., description="Existing file, relative to the storage root.")
    target: str = Field(..., description="Destination file path; its directory must exist.")


class RenameDirectoryRequest(BaseModel):
    old_directory: str
    new_directory: str


class EntryStatusResponse(BaseModel):
    path: str
    exists: bool
    is_file: bool
    is_directory: bool


class FileSizeResponse(BaseModel):
    path: str
    size: int


async def get_file_storage(settings: Settings = Depends(get_settings)) -> FileStorage:
    if not hasattr(app.state, "file_storage"):
        app.state.file_storage = FileStorage(settings.base_dir)
    return app.state.file_storage


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "kind": exc.kind.value})


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/files", response_model=PathResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    directory: str = Form(default=""),
    filename: Optional[str] = Form(default=None),
    storage: FileStorage = Depends(get_file_storage),
):
    try:
        content = file.file.read()
    finally:
        file.file.close()
    path = storage.add_file(content, directory, filename or file.filename or "")
    return PathResponse(path=path)


@app.get("/files/content", response_class=FileResponse)
def download_file(path: str, storage: FileStorage = Depends(get_file_storage)):
    stored = storage.read_file(path)
    return FileResponse(stored.path, filename=stored.filename, media_type="application/octet-stream")


@app.get("/files/size", response_model=FileSizeResponse)
def file_size(path: str, storage: FileStorage = Depends(get_file_storage)):
    return FileSizeResponse(path=path, size=storage.file_size(path))


@app.post("/files/copy", response_model=PathResponse)
def copy_file(payload: TransferRequest, storage: FileStorage = Depends(get_file_storage)):
    return PathResponse(path=storage.copy_file(payload.source, payload.target))


@app.post("/files/move", response_model=PathResponse)
def move_file(payload: TransferRequest, storage: FileStorage = Depends(get_file_storage)):
    return PathResponse(path=storage.move_file(payload.source, payload.target))


@app.get("/entries/status", response_model=EntryStatusResponse)
def entry_status(path: str = "", storage: FileStorage = Depends(get_file_storage)):
    return EntryStatusResponse(
        path=path,
        exists=storage.exists(path),
        is_file=storage.is_file(path),
        is_directory=storage.is_directory(path),
    )


@app.delete("/entries", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_entry(path: str, recursive: bool = False, storage: FileStorage = Depends(get_file_storage)):
    if recursive:
        storage.delete_recursive(path)
    else:
        storage.delete(path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/directories/entries", response_model=list[str])
def list_entries(
    path: str = "",
    kind: EntryKind = EntryKind.ANY,
    storage: FileStorage = Depends(get_file_storage),
):
    return storage.list_entries(path, kind)


@app.post("/directories", response_model=PathResponse, status_code=status.HTTP_201_CREATED)
def create_directory(payload: CreateDirectoryRequest, storage: FileStorage = Depends(get_file_storage)):
    return PathResponse(path=storage.create_directory(payload.path))


@app.post("/directories/rename", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def rename_directory(payload: RenameDirectoryRequest, storage: FileStorage = Depends(get_file_storage)):
    storage.rename_directory(payload.old_directory, payload.new_directory)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/tree", response_model=dict[str, list[str]])
def current_tree(storage: FileStorage = Depends(get_file_storage)):
    return storage.current_tree()
