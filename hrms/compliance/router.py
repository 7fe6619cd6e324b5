"""Compliance router: licenses and certifications per employee."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import ComplianceStatus, UserRole
from hrms.common.pagination import PaginationParams
from hrms.compliance.schemas import (
    ComplianceItemCreate,
    ComplianceItemResponse,
    ComplianceItemUpdate,
)
from hrms.compliance.service import ComplianceService
from hrms.database import get_db

router = APIRouter(prefix="", tags=["compliance"])


def _payload(item) -> dict:
    return ComplianceItemResponse.model_validate(item).model_dump(mode="json")


@router.get("")
async def list_compliance_items(
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[ComplianceStatus] = Query(None),
    item_type: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Compliance items ordered by expiration date, soonest first."""
    result = await ComplianceService.list_items(
        db, pagination, user,
        employee_id=employee_id, status=status, item_type=item_type,
    )
    return result.to_envelope()


@router.post("", status_code=201)
async def create_compliance_item(
    body: ComplianceItemCreate,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    item = await ComplianceService.create_item(db, body, user)
    return {"data": _payload(item), "message": "Compliance item created successfully."}


@router.get("/{item_id}")
async def get_compliance_item(
    item_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await ComplianceService.get_item(db, item_id, user)
    return {"data": _payload(item), "message": "Compliance item retrieved successfully."}


@router.put("/{item_id}")
async def update_compliance_item(
    item_id: uuid.UUID,
    body: ComplianceItemUpdate,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    item = await ComplianceService.update_item(db, item_id, body, user)
    return {"data": _payload(item), "message": "Compliance item updated successfully."}


@router.delete("/{item_id}", status_code=204)
async def delete_compliance_item(
    item_id: uuid.UUID,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    await ComplianceService.delete_item(db, item_id, user)
    return Response(status_code=204)
