from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request, send_file

from app.petcare.db import db_session
from app.petcare.modules.documents.models import Document
from app.petcare.modules.documents.service import (
    DocumentError,
    get_owned_document,
    list_documents,
    remove_document,
    serialize_document,
    store_document,
)
from app.petcare.rbac import current_user, require_feature
from app.petcare.storage import StorageError, storage_from_config
from app.petcare.utils import parse_int

bp = Blueprint("documents", __name__)


def _owned_document_or_404(document_id: int) -> Document:
    d = get_owned_document(db_session(), current_user().id, document_id)
    if not d:
        abort(404, description="Document not found")
    return d


@bp.get("/documents")
@require_feature("documents")
def documents_list():
    s = db_session()
    pet_id = parse_int(request.args.get("petId"))
    return jsonify([serialize_document(d) for d in list_documents(s, current_user().id, pet_id)])


@bp.post("/documents/upload")
@require_feature("documents")
def documents_upload():
    s = db_session()
    f = request.files.get("file")
    if not f or not f.filename:
        return jsonify({"error": "No file provided"}), 400

    storage = storage_from_config(current_app.config)
    try:
        d = store_document(
            s,
            storage,
            user=current_user(),
            data=f.read(),
            filename=f.filename,
            content_type=f.mimetype or "",
            form=request.form.to_dict(),
        )
    except DocumentError as e:
        return jsonify({"error": str(e)}), 400
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    s.commit()
    return jsonify(serialize_document(d)), 201


@bp.get("/documents/<int:document_id>/download")
@require_feature("documents")
def document_download(document_id: int):
    d = _owned_document_or_404(document_id)
    storage = storage_from_config(current_app.config)
    try:
        fobj = storage.open(d.storage_key)
    except StorageError:
        current_app.logger.warning("Document %s missing from storage key=%s", d.id, d.storage_key)
        abort(404, description="Document file not found")
    return send_file(
        fobj,
        mimetype=d.content_type,
        as_attachment=True,
        download_name=d.original_filename,
        max_age=0,
    )


@bp.delete("/documents/<int:document_id>")
@require_feature("documents")
def document_delete(document_id: int):
    s = db_session()
    d = _owned_document_or_404(document_id)
    key = remove_document(s, d, current_user())
    s.commit()
    try:
        storage_from_config(current_app.config).delete(key)
    except StorageError as e:
        current_app.logger.warning("Document %s deleted but blob %s was not removed: %s", document_id, key, e)
    return jsonify({"message": "Document deleted successfully"})
