"""Document service layer: uploads on disk, metadata in the database.

Who may touch a document:
  - admin: everything
  - hr: read everything
  - department_head / manager: documents they own, of their department,
    of an employee in their department, and general ones
  - employee: documents they own, linked to their own profile, and general ones
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_employee_for_user
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, UserRole
from hrms.common.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    PayloadTooLargeException,
)
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.config import settings
from hrms.core_hr.models import Department, Employee
from hrms.documents.models import Document
from hrms.documents.schemas import DocumentMetadataUpdate, DocumentResponse

logger = logging.getLogger(__name__)

_DEPARTMENT_ROLES = (UserRole.department_head, UserRole.manager)


def stored_path(filename: str) -> str:
    """Absolute location of a stored upload. Only the base name is honoured."""
    return os.path.join(settings.UPLOAD_DIR, os.path.basename(filename))


class DocumentService:

    # ── Upload ──────────────────────────────────────────────────────

    @staticmethod
    async def upload(
        db: AsyncSession,
        file: UploadFile,
        user: User,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        employee_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
    ) -> Document:
        if file.content_type not in settings.allowed_upload_types_list:
            raise BadRequestException(
                f"File type '{file.content_type}' not allowed. Accepted: PDF, JPEG, PNG, GIF.",
            )

        contents = await file.read()
        if not contents:
            raise BadRequestException("Uploaded file is empty.")
        if len(contents) > settings.max_upload_bytes:
            raise PayloadTooLargeException(settings.MAX_UPLOAD_SIZE_MB)

        employee = await _get_employee(db, employee_id)
        if department_id is not None and await db.get(Department, department_id) is None:
            raise BadRequestException("Department not found.")
        await _ensure_can_upload(db, user, employee, department_id)

        # UUID-only file name; the client's name never reaches the filesystem
        ext = os.path.splitext(file.filename or "")[1].lower()
        safe_name = f"{uuid.uuid4().hex}{ext}"
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        with open(stored_path(safe_name), "wb") as f:
            f.write(contents)

        document = Document(
            title=(title or "").strip() or file.filename or safe_name,
            file_path=safe_name,
            file_type=file.content_type,
            file_size=len(contents),
            owner_id=user.id,
            employee_id=employee_id,
            department_id=department_id,
            version=1,
            description=description,
        )
        db.add(document)
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.upload,
            description=f"Uploaded document '{document.title}'",
            entity_type="Document",
            entity_id=document.id,
            details={"file_type": document.file_type, "file_size": document.file_size},
        )
        logger.info("Stored upload %s (%d bytes)", safe_name, document.file_size)
        return document

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def list_documents(
        db: AsyncSession,
        pagination: PaginationParams,
        user: User,
        *,
        employee_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = select(Document).order_by(Document.created_at.desc())
        visible = await _visibility_clause(db, user)
        if visible is not None:
            query = query.where(visible)
        if employee_id is not None:
            query = query.where(Document.employee_id == employee_id)
        if department_id is not None:
            query = query.where(Document.department_id == department_id)

        return await paginate(
            db, query, pagination,
            model=Document,
            transform=DocumentResponse.model_validate,
        )

    @staticmethod
    async def get_document(db: AsyncSession, document_id: uuid.UUID, user: User) -> Document:
        document = await db.get(Document, document_id)
        if document is None:
            raise NotFoundException("Document", str(document_id))
        await _ensure_can_read(db, user, document)
        return document

    @staticmethod
    async def get_for_download(db: AsyncSession, filename: str, user: User) -> tuple[Document, str]:
        """The record behind *filename* and its path on disk, after access checks."""
        safe_name = os.path.basename(filename)
        result = await db.execute(select(Document).where(Document.file_path == safe_name))
        document = result.scalars().first()
        if document is None:
            raise NotFoundException("Document", safe_name)
        await _ensure_can_read(db, user, document)

        path = stored_path(safe_name)
        if not os.path.isfile(path):
            logger.warning("Document %s has no file on disk at %s", document.id, path)
            raise NotFoundException("File", safe_name)
        return document, path

    # ── Update / delete ─────────────────────────────────────────────

    @staticmethod
    async def update_metadata(
        db: AsyncSession,
        document_id: uuid.UUID,
        data: DocumentMetadataUpdate,
        user: User,
    ) -> Document:
        document = await db.get(Document, document_id)
        if document is None:
            raise NotFoundException("Document", str(document_id))
        if not await _can_manage(db, user, document):
            raise ForbiddenException(detail="You cannot change this document.")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("employee_id") is not None:
            await _get_employee(db, changes["employee_id"])
        if changes.get("department_id") is not None:
            if await db.get(Department, changes["department_id"]) is None:
                raise BadRequestException("Department not found.")
        for field, value in changes.items():
            setattr(document, field, value)
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.update,
            description=f"Updated metadata of document '{document.title}'",
            entity_type="Document",
            entity_id=document.id,
            details={"fields": sorted(changes)},
        )
        return document

    @staticmethod
    async def delete_document(db: AsyncSession, document_id: uuid.UUID, user: User) -> None:
        document = await db.get(Document, document_id)
        if document is None:
            raise NotFoundException("Document", str(document_id))
        if user.role != UserRole.admin and document.owner_id != user.id:
            raise ForbiddenException(detail="Only the owner or an admin can delete this document.")

        path = stored_path(document.file_path)
        title = document.title
        await db.delete(document)
        await db.flush()

        if os.path.isfile(path):
            os.remove(path)
        else:
            logger.warning("File for deleted document %s was already missing", document_id)

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.delete,
            description=f"Deleted document '{title}'",
            entity_type="Document",
            entity_id=document_id,
        )


# ── Access rules ────────────────────────────────────────────────────

async def _get_employee(db: AsyncSession, employee_id: Optional[uuid.UUID]) -> Optional[Employee]:
    if employee_id is None:
        return None
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise BadRequestException("Employee not found.")
    return employee


async def _ensure_can_upload(
    db: AsyncSession,
    user: User,
    employee: Optional[Employee],
    department_id: Optional[uuid.UUID],
) -> None:
    if user.role == UserRole.admin:
        return
    general = employee is None and department_id is None
    own = employee is not None and employee.user_id == user.id

    if user.role == UserRole.department_head:
        dept = user.department_id
        if general or own:
            return
        if dept is not None and employee is None and department_id == dept:
            return
        if dept is not None and employee is not None and employee.department_id == dept:
            if department_id in (None, dept):
                return
    elif user.role == UserRole.employee:
        if (general or own) and department_id is None:
            return
    raise ForbiddenException(detail="You are not allowed to upload this document.")


async def _visibility_clause(db: AsyncSession, user: User):
    """WHERE clause limiting documents to those *user* may read; None means all."""
    if user.role in (UserRole.admin, UserRole.hr):
        return None

    general = and_(Document.employee_id.is_(None), Document.department_id.is_(None))
    clauses = [Document.owner_id == user.id, general]
    if user.role in _DEPARTMENT_ROLES and user.department_id is not None:
        clauses.append(Document.department_id == user.department_id)
        clauses.append(
            Document.employee_id.in_(
                select(Employee.id).where(Employee.department_id == user.department_id)
            )
        )
    else:
        own = await get_employee_for_user(db, user)
        if own is not None:
            clauses.append(Document.employee_id == own.id)
    return or_(*clauses)


async def _in_users_department(db: AsyncSession, user: User, document: Document) -> bool:
    dept = user.department_id
    if dept is None:
        return False
    if document.department_id == dept:
        return True
    if document.employee_id is not None:
        employee = await db.get(Employee, document.employee_id)
        return employee is not None and employee.department_id == dept
    return False


async def _ensure_can_read(db: AsyncSession, user: User, document: Document) -> None:
    if user.role in (UserRole.admin, UserRole.hr):
        return
    if document.owner_id == user.id or document.is_general:
        return
    if user.role in _DEPARTMENT_ROLES:
        if await _in_users_department(db, user, document):
            return
    elif document.employee_id is not None:
        own = await get_employee_for_user(db, user)
        if own is not None and own.id == document.employee_id:
            return
    raise ForbiddenException(detail="You do not have access to this document.")


async def _can_manage(db: AsyncSession, user: User, document: Document) -> bool:
    if user.role == UserRole.admin or document.owner_id == user.id:
        return True
    if user.role == UserRole.department_head:
        return await _in_users_department(db, user, document)
    return False
