"""Research document services: listing, PIN-gated reads, and admin mutations."""

from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.research_document import ResearchDocument, utcnow
from services.access import require_access
from services.assets import COVER_FOLDER, THUMBNAIL_FOLDER, AssetResolver, UploadedAsset
from services.errors import ForbiddenError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "category", "content")
ALLOWED_SORT_KEYS = {"newest", "oldest", "title"}
ALLOWED_ACCESS_FILTERS = {"all", "public", "protected"}
WORDS_PER_MINUTE = 200
FILE_SLOTS = {
    "thumbnail": THUMBNAIL_FOLDER,
    "coverImage": COVER_FOLDER,
}


class ResearchDocumentFields(BaseModel):
    """Incoming document fields, whatever transport carried them."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    content: Optional[str] = None
    pin: Optional[str] = None
    thumbnail: Optional[str] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")

    @model_validator(mode="before")
    @classmethod
    def _image_alias(cls, data: Any) -> Any:
        # Older clients send the thumbnail URL as "image".
        if isinstance(data, dict) and "thumbnail" not in data and "image" in data:
            data = {**data, "thumbnail": data["image"]}
        return data

    @field_validator("title", "description", "category", "thumbnail", "cover_image", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip()

    @field_validator("pin", mode="before")
    @classmethod
    def _pin(cls, value: Any) -> Optional[str]:
        # Numeric PINs from JSON clients are accepted as their digits.
        if value is None:
            return None
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value.strip()

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("must be a string")
        return value

    def provided(self) -> Dict[str, str]:
        """Fields the caller actually sent (explicit nulls count as omitted)."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


def _parse_fields(payload: Mapping[str, Any]) -> ResearchDocumentFields:
    try:
        return ResearchDocumentFields.model_validate(dict(payload))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise InvalidInputError(f"Invalid research document fields: {location} {first.get('msg')}".strip()) from exc


def validate_create_fields(payload: Mapping[str, Any]) -> ResearchDocumentFields:
    fields = _parse_fields(payload)
    missing = [name for name in REQUIRED_FIELDS if not (getattr(fields, name) or "").strip()]
    if missing:
        raise InvalidInputError("Title, description, category, and content are required")
    return fields


def validate_update_fields(payload: Mapping[str, Any]) -> Dict[str, str]:
    provided = _parse_fields(payload).provided()
    emptied = [name for name in REQUIRED_FIELDS if name in provided and not provided[name].strip()]
    if emptied:
        raise InvalidInputError(f"{', '.join(emptied)} cannot be empty")
    return provided


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: Optional[datetime]) -> Optional[str]:
    normalized = _as_utc(value)
    return normalized.isoformat() if normalized else None


def title_sort_key(title: Optional[str]) -> tuple:
    """Case- and accent-insensitive ordering, close to a browser's localeCompare."""
    folded = (title or "").casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (base, folded)


def estimate_read_minutes(content: Optional[str]) -> int:
    words = len([word for word in re.split(r"\s+", content or "") if word])
    return max(1, int(words / WORDS_PER_MINUTE + 0.5))


def _document_payload(document: ResearchDocument) -> Dict[str, Any]:
    return {
        "id": document.id,
        "title": document.title,
        "description": document.description,
        "category": document.category,
        "image": document.image or "",
        "thumbnail": document.thumbnail or "",
        "coverImage": document.cover_image or "",
        "content": document.content,
        "pin": document.pin or "",
        "isProtected": document.is_protected,
        "readTimeMinutes": estimate_read_minutes(document.content),
        "createdAt": _iso(document.created_at),
        "updatedAt": _iso(document.updated_at),
    }


def _listing_payload(document: ResearchDocument) -> Dict[str, Any]:
    """List entry: never carries the pin, and gated entries carry no content."""
    payload = _document_payload(document)
    payload.pop("pin")
    if document.is_protected:
        payload["content"] = ""
    return payload


def _check_asset_sizes(files: Mapping[str, Optional[UploadedAsset]]) -> None:
    limit = int(settings.ASSET_MAX_UPLOAD_BYTES)
    for slot, asset in files.items():
        if asset is not None and asset.size > limit:
            raise InvalidInputError(f"{slot} exceeds the {limit} byte upload limit")


async def _resolve_uploads(
    files: Optional[Mapping[str, Optional[UploadedAsset]]],
    assets: AssetResolver,
) -> Dict[str, str]:
    """Upload attached binaries; returns durable URLs keyed by slot."""
    resolved: Dict[str, str] = {}
    if not files:
        return resolved
    _check_asset_sizes(files)
    for slot, folder in FILE_SLOTS.items():
        asset = files.get(slot)
        if asset is None:
            continue
        resolved[slot] = await assets.store(asset, folder)
    return resolved


async def _get_document(document_id: str, db: AsyncSession) -> ResearchDocument:
    result = await db.execute(select(ResearchDocument).where(ResearchDocument.id == document_id))
    document = result.scalar_one_or_none()
    if not document:
        raise NotFoundError("Research document not found")
    return document


async def list_research_documents_service(
    *,
    db: AsyncSession,
    category: Optional[str] = None,
    sort: str = "newest",
    access: str = "all",
) -> List[Dict[str, Any]]:
    sort_key = (sort or "newest").strip().lower()
    if sort_key not in ALLOWED_SORT_KEYS:
        raise InvalidInputError("sort must be one of: newest, oldest, title")
    access_filter = (access or "all").strip().lower()
    if access_filter not in ALLOWED_ACCESS_FILTERS:
        raise InvalidInputError("access must be one of: all, public, protected")

    query = select(ResearchDocument)
    if category:
        query = query.where(ResearchDocument.category == category)
    if access_filter == "public":
        query = query.where(ResearchDocument.pin == "")
    elif access_filter == "protected":
        query = query.where(ResearchDocument.pin != "")

    if sort_key == "oldest":
        query = query.order_by(ResearchDocument.updated_at.asc(), ResearchDocument.created_at.asc())
    else:
        query = query.order_by(ResearchDocument.updated_at.desc(), ResearchDocument.created_at.desc())

    result = await db.execute(query)
    documents = list(result.scalars().all())
    if sort_key == "title":
        # SQLite lower() only folds ASCII, so titles are ordered here.
        documents.sort(key=lambda document: title_sort_key(document.title))
    logger.info(
        "research_list category=%s sort=%s access=%s total=%s",
        category or "all",
        sort_key,
        access_filter,
        len(documents),
    )
    return [_listing_payload(document) for document in documents]


async def list_research_categories_service(*, db: AsyncSession) -> List[str]:
    result = await db.execute(select(ResearchDocument.category).distinct())
    return sorted({category for category in result.scalars().all() if category}, key=str.lower)


async def get_research_document_service(
    *,
    document_id: str,
    pin: Optional[str],
    db: AsyncSession,
) -> Dict[str, Any]:
    document = await _get_document(document_id, db)
    try:
        require_access(document.pin, pin)
    except ForbiddenError:
        logger.warning("research_read_denied id=%s pin_supplied=%s", document.id, bool(pin))
        raise
    return _document_payload(document)


async def create_research_document_service(
    *,
    payload: Mapping[str, Any],
    files: Optional[Mapping[str, Optional[UploadedAsset]]],
    db: AsyncSession,
    assets: AssetResolver,
) -> Dict[str, Any]:
    fields = validate_create_fields(payload)
    uploaded = await _resolve_uploads(files, assets)

    thumbnail = uploaded.get("thumbnail") or fields.thumbnail or ""
    now = utcnow()
    document = ResearchDocument(
        title=fields.title,
        description=fields.description,
        category=fields.category,
        image=thumbnail,
        thumbnail=thumbnail,
        cover_image=uploaded.get("coverImage") or fields.cover_image or "",
        content=fields.content,
        pin=fields.pin or "",
        created_at=now,
        updated_at=now,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)
    logger.info(
        "research_document_created id=%s category=%s protected=%s",
        document.id,
        document.category,
        document.is_protected,
    )
    return _document_payload(document)


async def update_research_document_service(
    *,
    document_id: str,
    payload: Mapping[str, Any],
    files: Optional[Mapping[str, Optional[UploadedAsset]]],
    db: AsyncSession,
    assets: AssetResolver,
) -> Dict[str, Any]:
    document = await _get_document(document_id, db)
    provided = validate_update_fields(payload)
    uploaded = await _resolve_uploads(files, assets)

    for name in ("title", "description", "category", "content", "pin"):
        if name in provided:
            setattr(document, name, provided[name])

    if "thumbnail" in uploaded or "thumbnail" in provided:
        thumbnail = uploaded.get("thumbnail", provided.get("thumbnail", ""))
        document.thumbnail = thumbnail
        document.image = thumbnail
    if "coverImage" in uploaded or "cover_image" in provided:
        document.cover_image = uploaded.get("coverImage", provided.get("cover_image", ""))

    previous = _as_utc(document.updated_at)
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    document.updated_at = now

    await db.commit()
    await db.refresh(document)
    logger.info(
        "research_document_updated id=%s fields=%s uploads=%s",
        document.id,
        ",".join(sorted(provided)) or "-",
        ",".join(sorted(uploaded)) or "-",
    )
    return _document_payload(document)


async def delete_research_document_service(*, document_id: str, db: AsyncSession) -> Dict[str, Any]:
    document = await _get_document(document_id, db)
    await db.delete(document)
    await db.commit()
    logger.info("research_document_deleted id=%s", document_id)
    return {"message": "Research document deleted", "id": document_id}
