"""
Query item distribution: relay locally stored files to the query formulator.

Responsibility: Store uploads and decoded sketches in local temporary storage,
post them as multipart to the ingestion endpoint, and rewrite each item from its
local path to the returned external reference. Called by the API layer; no
FastAPI here.
"""

import asyncio
import base64
import binascii
import logging
import re
import time
from pathlib import Path
from typing import Any

import httpx

from musebag.core.config import HTTP_TIMEOUT, TMP_DIR, TMP_MAX_AGE, TMP_URL
from musebag.core.errors import DistributionError, InputError, LocalIOError
from musebag.schemas.upload import UploadItem

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/png;base64,")
SKETCH_TYPE = "image/png"


def _tmp_root() -> Path:
    root = Path(TMP_DIR)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent path traversal (../). Returns safe basename."""
    if not filename or not filename.strip():
        return "unnamed"
    base = Path(filename).name
    safe = base.replace("..", "").replace("/", "").replace("\\", "")
    safe = re.sub(r"[^\w.\-]", "_", safe)
    return safe.strip() or "unnamed"


def _store_unique(filename: str, data: bytes) -> Path:
    """
    Write data to TMP_DIR/filename, suffixed with _1, _2, ... if that name is taken.
    The file is created exclusively, so concurrent writers never share a path.
    """
    purge_expired()
    root = _tmp_root()
    dest = root / _sanitize_filename(filename)
    stem, suffix = dest.stem, dest.suffix
    n = 0
    while True:
        try:
            with open(dest, "xb") as f:
                f.write(data)
            return dest
        except FileExistsError:
            n += 1
            dest = root / f"{stem}_{n}{suffix}"


def purge_expired(max_age: float = TMP_MAX_AGE) -> int:
    """
    Delete stored query items older than max_age seconds. Returns the number of files removed.
    Runs before each new item is stored so temporary storage does not grow without bound.
    """
    root = Path(TMP_DIR)
    if not root.is_dir():
        return 0
    cutoff = time.time() - max_age
    removed = 0
    for p in root.iterdir():
        try:
            if p.is_file() and p.stat().st_mtime < cutoff:
                p.unlink()
                removed += 1
        except OSError as e:
            logger.warning("Failed to remove %s: %s", p, e)
    if removed:
        logger.info("[distributor:purge_expired] removed=%d dir=%s", removed, TMP_DIR)
    return removed


def public_url(local_path: str) -> str:
    """Locally servable URL of a file in temporary storage."""
    return f"{TMP_URL}/{Path(local_path).name}"


async def save_upload(filename: str, content: bytes, content_type: str | None) -> UploadItem:
    """
    Persist a multipart upload to temporary storage.

    Raises:
        LocalIOError: If the file cannot be written.
    """
    try:
        dest = await asyncio.to_thread(_store_unique, filename, content)
    except OSError as e:
        raise LocalIOError(f"Failed to save upload: {e!s}") from e
    logger.info("[distributor:save_upload] name=%s size=%d path=%s", filename, len(content), dest)
    return UploadItem(
        path=str(dest),
        name=filename or dest.name,
        size=len(content),
        type=content_type or "application/octet-stream",
    )


async def write_sketch(canvas: str, name: str, subtype: str | None = None) -> UploadItem:
    """
    Decode a base64 PNG (optionally a data URL) and write it to temporary storage.

    Raises:
        InputError: If canvas is not valid base64.
        LocalIOError: If the file cannot be written.
    """
    payload = _DATA_URL_PREFIX.sub("", canvas or "")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError(f"Malformed sketch data: {e!s}") from e
    try:
        dest = await asyncio.to_thread(_store_unique, name, data)
    except OSError as e:
        raise LocalIOError(f"Failed to store sketch: {e!s}") from e
    logger.info("[distributor:write_sketch] name=%s size=%d subtype=%s", name, len(data), subtype)
    return UploadItem(path=str(dest), name=name, size=len(data), type=SKETCH_TYPE, subtype=subtype)


async def distribute_file(
    destination_url: str,
    extra_params: dict[str, Any],
    item: UploadItem,
    client: httpx.AsyncClient | None = None,
) -> UploadItem:
    """
    Send a locally stored item to destination_url and rewrite it in place.

    Precondition: item has not been distributed yet (each item is sent once).
    On success item.originPath is the public URL of the local file, item.path the
    returned external reference and item.subtype at least "". On failure item is
    left unchanged.

    Raises:
        DistributionError: If the item was already distributed, the endpoint is
            unreachable, times out, or answers with an error.
        LocalIOError: If the local file cannot be read.
    """
    if item.is_distributed:
        raise DistributionError(f"Query item {item.name!r} was already distributed")
    try:
        content = await asyncio.to_thread(Path(item.path).read_bytes)
    except OSError as e:
        raise LocalIOError(f"Failed to read query item {item.name!r}: {e!s}") from e

    data: dict[str, Any] = {
        "fileName": item.name,
        "fileSize": str(item.size),
        "fileType": item.type,
    }
    data.update({k: str(v) for k, v in extra_params.items()})
    files = {"file": (item.name, content, item.type)}

    logger.info("[distributor:distribute_file] IN  name=%s size=%d url=%s", item.name, item.size, destination_url)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as own_client:
                response = await own_client.post(destination_url, data=data, files=files)
        else:
            response = await client.post(destination_url, data=data, files=files)
    except httpx.TimeoutException as e:
        raise DistributionError("Query item upload timed out.") from e
    except httpx.HTTPError as e:
        raise DistributionError(f"Query item upload failed: {e!s}") from e

    try:
        body = response.json()
    except ValueError as e:
        raise DistributionError(f"Invalid response from ingestion endpoint (status {response.status_code})") from e
    if not isinstance(body, dict):
        raise DistributionError("Invalid response from ingestion endpoint")
    if body.get("error"):
        raise DistributionError(str(body["error"]))
    if not body.get("file"):
        raise DistributionError("Ingestion endpoint returned no file reference")

    item.origin_path = public_url(item.path)
    item.path = str(body["file"])
    item.subtype = item.subtype or ""
    logger.info("[distributor:distribute_file] OUT name=%s ref=%s", item.name, item.path)
    return item
