"""Queries against the `files` table, always scoped by the owning user."""
import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import MetadataPersistError, StoreQueryError

logger = logging.getLogger(__name__)


def create_file(db: Session, user_id: str, file_name: str, file_size: int,
                file_type: str, path: str) -> models.FileRecord:
    record = models.FileRecord(
        user_id=user_id,
        file_name=file_name,
        file_size=file_size,
        file_type=file_type,
        path=path,
        is_deleted=False,
    )
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error saving %s for user %s: %s", path, user_id, e)
        raise MetadataPersistError() from e
    return record


def list_active_files(db: Session, user_id: str) -> list[models.FileRecord]:
    stmt = select(models.FileRecord).where(
        models.FileRecord.user_id == user_id,
        models.FileRecord.is_deleted.is_(False),
    )
    try:
        return list(db.scalars(stmt).all())
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error listing files for user %s: %s", user_id, e)
        raise StoreQueryError("Error fetching files") from e


def get_active_file(db: Session, user_id: str, file_id: int):
    """Return the matching active record, or None."""
    stmt = select(models.FileRecord).where(
        models.FileRecord.file_id == file_id,
        models.FileRecord.user_id == user_id,
        models.FileRecord.is_deleted.is_(False),
    )
    try:
        return db.scalars(stmt).first()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error loading file %s for user %s: %s", file_id, user_id, e)
        raise StoreQueryError("Error fetching file") from e


def _update(db: Session, user_id: str, file_id: int, values: dict, action: str) -> int:
    # no is_deleted predicate: soft-deleted records can still be renamed
    stmt = (
        update(models.FileRecord)
        .where(
            models.FileRecord.file_id == file_id,
            models.FileRecord.user_id == user_id,
        )
        .values(**values)
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database error %s file %s for user %s: %s", action, file_id, user_id, e)
        raise StoreQueryError(f"Error {action} file") from e
    # SQLAlchemy reports matched rows here, MySQL included (FOUND_ROWS is on by default)
    return result.rowcount


def rename_file(db: Session, user_id: str, file_id: int, new_name: str) -> int:
    """Set file_name; returns the number of rows matched by the update."""
    return _update(db, user_id, file_id, {"file_name": new_name}, "renaming")


def soft_delete_file(db: Session, user_id: str, file_id: int) -> int:
    """Flag the record deleted; returns the number of rows matched by the update."""
    return _update(db, user_id, file_id, {"is_deleted": True}, "deleting")
