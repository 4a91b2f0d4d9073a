"""
Contact endpoints: the doctor's saved email and SMS recipients.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.database import get_db
from ..models.contact import Contact, ContactType
from ..models.doctor_profile import DoctorProfile
from ..schemas.common import ErrorResponse, SuccessResponse
from ..schemas.contact import ContactCreate, ContactResponse, ContactUpdate


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["Contacts"])


def _get_contact_or_404(db: Session, doctor: DoctorProfile, contact_id: UUID) -> Contact:
    contact = (
        db.query(Contact)
        .filter(Contact.id == contact_id, Contact.doctor_id == doctor.id)
        .first()
    )
    if contact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


@router.get("", response_model=List[ContactResponse], summary="List Contacts")
async def list_contacts(
    contact_type: Optional[ContactType] = Query(None, alias="type"),
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> List[Contact]:
    query = db.query(Contact).filter(Contact.doctor_id == doctor.id)
    if contact_type is not None:
        query = query.filter(Contact.type == contact_type)
    return query.order_by(Contact.created_at.desc()).all()


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Contact",
)
async def create_contact(
    data: ContactCreate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Contact:
    contact = Contact(doctor_id=doctor.id, **data.model_dump())
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.put(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Update Contact",
    responses={404: {"description": "Contact not found", "model": ErrorResponse}},
)
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Contact:
    contact = _get_contact_or_404(db, doctor, contact_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact


@router.delete(
    "/{contact_id}",
    response_model=SuccessResponse,
    summary="Delete Contact",
    responses={404: {"description": "Contact not found", "model": ErrorResponse}},
)
async def delete_contact(
    contact_id: UUID,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    contact = _get_contact_or_404(db, doctor, contact_id)
    db.delete(contact)
    db.commit()
    logger.info(f"Deleted contact {contact_id} for doctor {doctor.id}")
    return SuccessResponse(message="Contact deleted")
