"""Temporary image files produced by captures."""

import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)

CACHE_DIR = Path("cache")
ARTIFACT_EXTENSIONS = (".png", ".jpeg")


@dataclass(frozen=True)
class Artifact:
    path: Path
    media_type: str


def prepare_cache_dir() -> Path:
    """Create the cache directory and clear out files left by a previous run.

    Raises:
        RuntimeError: if the directory is not writable.
    """
    CACHE_DIR.mkdir(parents=True, exist_ok=True)
    if not os.access(CACHE_DIR, os.W_OK):
        raise RuntimeError(f"Cache directory {CACHE_DIR.resolve()} is not writable.")

    stale = [p for p in CACHE_DIR.iterdir() if p.suffix in ARTIFACT_EXTENSIONS]
    for path in stale:
        remove_file(path)
    if stale:
        logger.info("Removed %d stale artifacts from %s", len(stale), CACHE_DIR)
    return CACHE_DIR


def generate_name(extension: str = "png") -> Path:
    """Return a fresh absolute path inside the cache directory."""
    name = f"{time.time_ns()}{secrets.token_hex(8)}.{extension}"
    return (CACHE_DIR / name).resolve()


def remove_file(path: Path) -> None:
    """Delete *path* if it is a file; never raises."""
    try:
        if not path.is_file():
            return
        path.unlink()
    except FileNotFoundError:
        # Deleted concurrently; nothing left to do.
        return
    except OSError as exc:
        logger.error("Failed to remove artifact %s: %s", path, exc)


class EphemeralFileResponse(FileResponse):
    """A FileResponse that deletes its file once sending ends, however it ends."""

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            remove_file(Path(self.path))


def serve_and_delete(artifact: Artifact) -> FileResponse:
    """Stream *artifact* as the response body and delete it once sent."""
    return EphemeralFileResponse(artifact.path, media_type=artifact.media_type)
