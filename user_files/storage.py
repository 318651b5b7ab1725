"""Upload placement on the local filesystem.

Every user gets a directory under the uploads root, created on first use.
Stored names are random tokens that keep the original extension, so two
uploads from the same user never overwrite each other.
"""
import logging
import uuid
from pathlib import Path, PurePosixPath

from .errors import UploadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def user_dir(root: Path, user_id: str) -> Path:
    """Return `<root>/<user_id>`, creating it (and missing parents) if absent."""
    target = Path(root) / str(user_id)
    # exist_ok covers concurrent first uploads for the same user
    target.mkdir(parents=True, exist_ok=True)
    return target


def stored_name(original_name: str) -> str:
    return f"{uuid.uuid4().hex}{Path(original_name or '').suffix}"


def relative_path(user_id: str, name: str) -> str:
    return str(PurePosixPath(str(user_id)) / name)


def resolve(root: Path, rel_path: str) -> Path:
    """Absolute location of a stored relative path."""
    return (Path(root) / rel_path).resolve()


def write_stream(source, target: Path, max_bytes: int) -> int:
    """Copy `source` into `target`, stopping at `max_bytes`.

    Returns the number of bytes written. An oversized payload or an I/O
    failure removes whatever was written and raises UploadError.
    """
    written = 0
    try:
        with target.open("wb") as buffer:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadError(f"File too large: limit is {max_bytes} bytes")
                buffer.write(chunk)
    except UploadError:
        discard(target)
        raise
    except OSError as e:
        discard(target)
        raise UploadError(f"Error uploading file: {e}") from e
    return written


def discard(target: Path) -> bool:
    """Best-effort removal of a stored file. Returns True if it is gone."""
    try:
        Path(target).unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.error("Could not remove %s: %s", target, e)
        return False
