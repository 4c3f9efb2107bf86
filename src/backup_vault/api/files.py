"""Files API router - upload, download, list and delete backed-up files."""

from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse, Response

from backup_vault.api.dependencies import FilesServiceDep
from backup_vault.exceptions import ObjectNotFoundError, StorageError
from backup_vault.observability.logging import get_logger

router = APIRouter(tags=["files"])

logger = get_logger(__name__)


def content_disposition(filename: str) -> str:
    """Build an attachment Content-Disposition header for ``filename``."""
    if filename.isascii():
        return f"attachment; filename={filename}"
    # Header values are latin-1; non-ASCII names go through RFC 5987
    fallback = filename.encode("ascii", "replace").decode("ascii")
    return f"attachment; filename={fallback}; filename*=UTF-8''{quote(filename)}"


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/upload", response_class=PlainTextResponse)
async def upload_file(
    service: FilesServiceDep,
    file: UploadFile | str | None = File(None),
) -> str:
    """Upload a file, keyed by its original name."""
    # Browsers send an empty-named part (parsed as str) when no file is picked
    if not isinstance(file, UploadFile) or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    content = await file.read()

    try:
        await service.upload_file(filename=file.filename, content=content)
    except StorageError as e:
        logger.error("Upload failed", filename=file.filename, error=str(e))
        raise HTTPException(status_code=500, detail="Error uploading file.")

    return "File uploaded successfully!"


@router.get("/download/{filename:path}")
async def download_file(filename: str, service: FilesServiceDep) -> Response:
    """Download file content as an attachment."""
    try:
        content = await service.download_file(filename)
    except ObjectNotFoundError:
        logger.warning("Download of missing file", filename=filename)
        raise HTTPException(status_code=404, detail="File not found.")
    except StorageError as e:
        logger.error("Download failed", filename=filename, error=str(e))
        raise HTTPException(status_code=500, detail="Error downloading file.")

    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("/files")
async def list_files(service: FilesServiceDep) -> list[str]:
    """List every stored file key."""
    try:
        return await service.list_files()
    except StorageError as e:
        logger.error("Listing failed", error=str(e))
        raise HTTPException(status_code=500, detail="Unable to list files")


@router.delete("/delete/{filename:path}", response_class=PlainTextResponse)
async def delete_file(filename: str, service: FilesServiceDep) -> str:
    """Delete a stored file."""
    try:
        await service.delete_file(filename)
    except StorageError as e:
        logger.error("Delete failed", filename=filename, error=str(e))
        raise HTTPException(status_code=500, detail="Error deleting file.")

    return "File deleted successfully!"
