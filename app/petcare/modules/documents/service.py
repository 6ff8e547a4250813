from __future__ import annotations

import hashlib
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from werkzeug.utils import secure_filename

from app.petcare.audit import record_event
from app.petcare.modules.documents.models import Document
from app.petcare.modules.pets.service import get_owned_pet
from app.petcare.utils import iso

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.petcare.models import User
    from app.petcare.storage import Storage


ALLOWED_CONTENT_TYPES = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}
DOCUMENT_CATEGORIES = ("medical", "insurance", "certificate", "vaccination", "other")
MAX_DOCUMENT_BYTES = 10 * 1024 * 1024


class DocumentError(ValueError):
    pass


def file_digest_and_bytes(file_bytes: bytes) -> tuple[str, int]:
    h = hashlib.sha256()
    h.update(file_bytes)
    return (h.hexdigest(), len(file_bytes))


def sanitize_upload_filename(filename: str) -> str:
    fn = secure_filename(filename or "")
    return fn or "document.bin"


def serialize_document(d: Document) -> dict[str, Any]:
    return {
        "id": d.id,
        "petId": d.pet_id,
        "title": d.title,
        "description": d.description,
        "category": d.category,
        "filename": d.original_filename,
        "contentType": d.content_type,
        "sizeBytes": d.size_bytes,
        "sha256": d.sha256,
        "pet": {"name": d.pet.name, "species": d.pet.species} if d.pet else None,
        "createdAt": iso(d.created_at),
    }


def list_documents(s: "Session", user_id: int, pet_id: int | None = None) -> list[Document]:
    q = s.query(Document).filter(Document.user_id == user_id)
    if pet_id is not None:
        q = q.filter(Document.pet_id == pet_id)
    return q.order_by(Document.created_at.desc(), Document.id.desc()).all()


def get_owned_document(s: "Session", user_id: int, document_id: int) -> Document | None:
    return s.query(Document).filter(Document.id == document_id, Document.user_id == user_id).one_or_none()


def store_document(
    s: "Session",
    storage: "Storage",
    *,
    user: "User",
    data: bytes,
    filename: str,
    content_type: str,
    form: dict,
) -> Document:
    """Validate an upload, write it to storage and add the Document row.

    Raises DocumentError for rejected uploads and LookupError for a petId the
    user does not own.
    """
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise DocumentError("Unsupported file type. Allowed: PDF, JPEG, PNG, DOC, DOCX.")
    if not data:
        raise DocumentError("Uploaded file is empty.")
    if len(data) > MAX_DOCUMENT_BYTES:
        raise DocumentError("File too large (max 10MB).")

    category = (form.get("category") or "other").strip().lower()
    if category not in DOCUMENT_CATEGORIES:
        raise DocumentError(f"Invalid category. Must be one of: {', '.join(DOCUMENT_CATEGORIES)}")

    pet = None
    if (form.get("petId") or "").strip():
        pet = get_owned_pet(s, user.id, form.get("petId"))
        if pet is None:
            raise LookupError("Pet not found or access denied")

    safe_name = sanitize_upload_filename(filename)
    sha256, size_bytes = file_digest_and_bytes(data)
    storage_key = f"documents/user-{user.id}/{uuid.uuid4().hex}-{safe_name}"
    storage.put_bytes(storage_key, data, content_type=content_type)

    d = Document(
        user_id=user.id,
        pet_id=pet.id if pet else None,
        title=(form.get("title") or "").strip() or safe_name,
        description=(form.get("description") or "").strip() or None,
        category=category,
        storage_key=storage_key,
        original_filename=safe_name,
        content_type=content_type,
        size_bytes=size_bytes,
        sha256=sha256,
        created_at=datetime.utcnow(),
    )
    s.add(d)
    s.flush()

    record_event(
        s,
        actor=user,
        action="document.upload",
        entity_type="Document",
        entity_id=str(d.id),
        metadata={"filename": safe_name, "sha256": sha256, "size_bytes": size_bytes},
    )
    return d


def remove_document(s: "Session", d: Document, user: "User") -> str:
    """Audit and delete the row. Returns the storage key; the caller drops the blob once the delete commits."""
    key = d.storage_key
    record_event(
        s,
        actor=user,
        action="document.delete",
        entity_type="Document",
        entity_id=str(d.id),
        metadata={"filename": d.original_filename},
    )
    s.delete(d)
    return key
