from fastapi import FastAPI, Depends, Request
from fastapi.responses import FileResponse, JSONResponse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from . import crud, models, schemas, storage
from .auth import get_current_user_id
from .config import settings
from .database import engine, get_db
from .errors import (
    FileApiError,
    MetadataPersistError,
    MissingFileError,
    NotFoundError,
    StorageIntegrityError,
    StoreQueryError,
    UploadError,
)

# --- Setup DB ---
models.Base.metadata.create_all(bind=engine)

# --- Setup FastAPI ---
app = FastAPI(title="User Files API")

# --- Setup Logging ---
LOG_DIR = Path(settings.log_dir)
LOG_DIR.mkdir(parents=True, exist_ok=True)
logger = logging.getLogger("user_files")
logger.setLevel(settings.log_level)
fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")

if not logger.handlers:
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    fh = RotatingFileHandler(str(LOG_DIR / "app.log"), maxBytes=5*1024*1024, backupCount=3)
    fh.setFormatter(fmt)
    logger.addHandler(fh)

FIELD_NAME = "file"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _is_multipart_with_body(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    try:
        length = int(request.headers.get("content-length", "0"))
    except ValueError:
        length = 0
    return content_type.startswith("multipart/form-data") and length > 0


@app.get("/")
def root():
    return {"status": "API running"}


@app.post("/files", response_model=schemas.UploadResponse, status_code=201)
async def upload_file(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    try:
        form = await request.form()
    except (MultiPartException, HTTPException) as e:
        logger.warning("Malformed upload from user %s: %s", user_id, e)
        raise UploadError("Malformed multipart payload") from e

    try:
        uploads = [(key, value) for key, value in form.multi_items() if isinstance(value, UploadFile)]
        if not uploads:
            # a truncated multipart body parses to an empty form rather than raising
            if not form and _is_multipart_with_body(request):
                logger.warning("Truncated multipart upload from user %s", user_id)
                raise UploadError("Malformed multipart payload")
            raise MissingFileError()
        if len(uploads) > 1 or uploads[0][0] != FIELD_NAME:
            raise UploadError(f"Unexpected file field: expected a single '{FIELD_NAME}' field")
        upload = uploads[0][1]

        limit = settings.max_upload_bytes
        if upload.size is not None and upload.size > limit:
            raise UploadError(f"File too large: limit is {limit} bytes")

        try:
            target_dir = storage.user_dir(Path(settings.upload_dir), user_id)
        except OSError as e:
            raise UploadError(f"Error uploading file: {e}") from e
        name = storage.stored_name(upload.filename)
        target = target_dir / name
        size = await run_in_threadpool(storage.write_stream, upload.file, target, limit)
    finally:
        await form.close()

    try:
        record = crud.create_file(
            db,
            user_id=user_id,
            file_name=upload.filename or name,
            file_size=size,
            file_type=upload.content_type or DEFAULT_CONTENT_TYPE,
            path=storage.relative_path(user_id, name),
        )
    except MetadataPersistError:
        if storage.discard(target):
            logger.warning("Removed orphaned file %s after failed insert", target)
        raise

    logger.info("User %s uploaded %s as %s (%d bytes)", user_id, record.file_name, record.path, size)
    return {"message": "File uploaded successfully", "file": schemas.FileRecordResponse.model_validate(record)}


@app.get("/files", response_model=list[schemas.FileRecordResponse])
def list_files(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return crud.list_active_files(db, user_id)


def _check_matched(rows: int, action: str, file_id: int, user_id: str):
    if rows:
        return
    logger.warning("%s matched no rows for file %s, user %s", action, file_id, user_id)
    if settings.strict_ownership:
        raise NotFoundError()


@app.api_route("/files/{file_id}", methods=["PATCH", "PUT"], response_model=schemas.MessageResponse)
def rename_file(
    file_id: int,
    payload: schemas.RenameRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    rows = crud.rename_file(db, user_id, file_id, payload.new_file_name)
    _check_matched(rows, "Rename", file_id, user_id)
    logger.info("User %s renamed file %s to %r", user_id, file_id, payload.new_file_name)
    return {"message": "File renamed successfully"}


@app.delete("/files/{file_id}", response_model=schemas.MessageResponse)
def delete_file(file_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    rows = crud.soft_delete_file(db, user_id, file_id)
    _check_matched(rows, "Delete", file_id, user_id)
    logger.info("User %s deleted file %s", user_id, file_id)
    return {"message": "File deleted successfully"}


@app.get("/files/{file_id}/download")
def download_file(file_id: int, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    try:
        db_file = crud.get_active_file(db, user_id, file_id)
    except StoreQueryError as e:
        raise NotFoundError() from e
    if not db_file:
        raise NotFoundError()

    target = storage.resolve(Path(settings.upload_dir), db_file.path)
    if not target.is_file():
        logger.error("File %s of record %s is missing from storage", target, db_file.file_id)
        raise StorageIntegrityError()

    return FileResponse(target, media_type=db_file.file_type, filename=db_file.file_name)


@app.exception_handler(FileApiError)
async def file_api_error(request: Request, exc: FileApiError):
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
async def global_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})
