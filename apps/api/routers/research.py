"""Research document router: public reads and admin-only mutations."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from config import settings
from database import get_db
from routers.auth_scope import AdminContext, require_admin
from services.assets import AssetResolver, UploadedAsset, get_asset_resolver
from services.errors import InvalidInputError
from services.research import (
    FILE_SLOTS,
    create_research_document_service,
    delete_research_document_service,
    get_research_document_service,
    list_research_categories_service,
    list_research_documents_service,
    update_research_document_service,
)

router = APIRouter()


UPLOAD_CHUNK_BYTES = 1024 * 1024


async def read_upload(upload: UploadFile, slot: str, limit: int) -> bytes:
    """Read a file part in chunks, stopping once it passes ``limit`` bytes."""
    try:
        if upload.size is not None and upload.size > limit:
            raise InvalidInputError(f"{slot} exceeds the {limit} byte upload limit")
        chunks = []
        total_size = 0
        while True:
            chunk = await upload.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > limit:
                raise InvalidInputError(f"{slot} exceeds the {limit} byte upload limit")
            chunks.append(chunk)
        return b"".join(chunks)
    finally:
        await upload.close()


async def _read_document_request(request: Request) -> Tuple[Dict[str, Any], Dict[str, UploadedAsset]]:
    """Split a multipart or JSON request into plain fields and attached images."""
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as exc:
            raise InvalidInputError("Request body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise InvalidInputError("Request body must be a JSON object")
        return body, {}

    limit = int(settings.ASSET_MAX_UPLOAD_BYTES)
    form = await request.form()
    fields: Dict[str, Any] = {}
    files: Dict[str, UploadedAsset] = {}
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key not in FILE_SLOTS or key in files:
                    continue
                data = await read_upload(value, key, limit)
                # Browsers send an empty part when no file was chosen.
                if not data:
                    continue
                files[key] = UploadedAsset(
                    filename=value.filename or key,
                    content_type=value.content_type or "application/octet-stream",
                    data=data,
                )
            elif key not in fields:
                fields[key] = value
    finally:
        await form.close()
    return fields, files


@router.get("")
async def list_research_documents(
    category: Optional[str] = Query(default=None),
    sort: Literal["newest", "oldest", "title"] = Query(default="newest"),
    access: Literal["all", "public", "protected"] = Query(default="all"),
    db: AsyncSession = Depends(get_db),
):
    """List documents, newest-updated first unless another sort is requested."""
    return await list_research_documents_service(
        db=db,
        category=category or None,
        sort=sort,
        access=access,
    )


@router.get("/categories")
async def list_research_categories(db: AsyncSession = Depends(get_db)):
    return {"categories": await list_research_categories_service(db=db)}


@router.get("/{document_id}")
async def get_research_document(
    document_id: str,
    pin: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Return a full document; gated documents need the matching ``pin``."""
    return await get_research_document_service(document_id=document_id, pin=pin, db=db)


@router.post("", status_code=201)
async def create_research_document(
    request: Request,
    _admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    assets: AssetResolver = Depends(get_asset_resolver),
):
    fields, files = await _read_document_request(request)
    return await create_research_document_service(
        payload=fields,
        files=files,
        db=db,
        assets=assets,
    )


@router.put("/{document_id}")
async def update_research_document(
    document_id: str,
    request: Request,
    _admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    assets: AssetResolver = Depends(get_asset_resolver),
):
    """Partial update: omitted fields keep their stored values."""
    fields, files = await _read_document_request(request)
    return await update_research_document_service(
        document_id=document_id,
        payload=fields,
        files=files,
        db=db,
        assets=assets,
    )


@router.delete("/{document_id}")
async def delete_research_document(
    document_id: str,
    _admin: AdminContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await delete_research_document_service(document_id=document_id, db=db)
