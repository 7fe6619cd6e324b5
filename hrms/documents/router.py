"""Documents router: multipart upload, listing, download and metadata."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.models import User
from hrms.common.pagination import PaginationParams
from hrms.database import get_db
from hrms.documents.schemas import DocumentMetadataUpdate, DocumentResponse
from hrms.documents.service import DocumentService

router = APIRouter(prefix="", tags=["documents"])


def _payload(document) -> dict:
    return DocumentResponse.model_validate(document).model_dump(mode="json")


# ── POST /upload ────────────────────────────────────────────────────

@router.post("/upload", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    employee_id: Optional[uuid.UUID] = Form(None),
    department_id: Optional[uuid.UUID] = Form(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload a PDF or image. The stored name is a random UUID plus extension."""
    document = await DocumentService.upload(
        db, file, user,
        title=title,
        description=description,
        employee_id=employee_id,
        department_id=department_id,
    )
    return {"data": _payload(document), "message": "Document uploaded successfully."}


# ── GET / ───────────────────────────────────────────────────────────

@router.get("")
async def list_documents(
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DocumentService.list_documents(
        db, pagination, user, employee_id=employee_id, department_id=department_id,
    )
    return result.to_envelope()


# ── GET /download/{filename} ────────────────────────────────────────

@router.get("/download/{filename}")
async def download_document(
    filename: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document, path = await DocumentService.get_for_download(db, filename, user)
    return FileResponse(
        path,
        media_type=document.file_type,
        filename=document.file_path,
    )


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{document_id}")
async def get_document(
    document_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.get_document(db, document_id, user)
    return {"data": _payload(document), "message": "Document retrieved successfully."}


# ── PUT /{id}/metadata ──────────────────────────────────────────────

@router.put("/{document_id}/metadata")
async def update_document_metadata(
    document_id: uuid.UUID,
    body: DocumentMetadataUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    document = await DocumentService.update_metadata(db, document_id, body, user)
    return {"data": _payload(document), "message": "Document metadata updated successfully."}


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await DocumentService.delete_document(db, document_id, user)
    return Response(status_code=204)
