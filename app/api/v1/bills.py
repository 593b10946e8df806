from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.bill import BillInput, BillResponse
from app.schemas.result import Result
from app.schemas.user import MessageResponse
from app.services.bill_service import BillService

router = APIRouter()


@router.get("", response_model=Result[List[BillResponse]])
async def list_bills(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Household bills when in a household, personal bills otherwise."""
    service = BillService(db)
    bills = service.list_bills(current_user, skip=skip, limit=limit)
    return Result.successful(data=bills)


@router.get("/{bill_id}", response_model=Result[BillResponse])
async def get_bill(
    bill_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a single bill."""
    service = BillService(db)
    bill = service.get_bill(current_user, bill_id)
    return Result.successful(data=bill)


@router.post("", response_model=Result[BillResponse], status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_data: BillInput,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a bill in the caller's current scope."""
    service = BillService(db)
    bill = service.create_bill(current_user, bill_data)
    return Result.successful(data=bill)


@router.put("/{bill_id}", response_model=Result[BillResponse])
async def update_bill(
    bill_id: int,
    bill_data: BillInput,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a bill visible to the caller."""
    service = BillService(db)
    bill = service.update_bill(current_user, bill_id, bill_data)
    return Result.successful(data=bill)


@router.delete("/{bill_id}", response_model=Result[MessageResponse])
async def delete_bill(
    bill_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a bill visible to the caller."""
    service = BillService(db)
    service.delete_bill(current_user, bill_id)
    return Result.successful(data={"message": "Bill deleted successfully"})
