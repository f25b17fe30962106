"""
COR certificate endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.models.certificate import CORType
from cor_engine.schemas.certificate import (
    CertificateIssueRequest,
    CertificateListResponse,
    CertificateResponse,
    CertificateRevokeRequest,
)
from cor_engine.services.certificate_service import CertificateService
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


# Static routes before /{certificate_id}


@router.get("/active", response_model=Optional[CertificateResponse])
async def get_active_certificate(
    organization_id: str,
    cor_type: CORType = Query(CORType.OHS, description="COR program"),
    db: Session = Depends(get_db),
):
    """Most recent non-revoked certificate, or null. May already be expired."""
    certificate = CertificateService(db, organization_id).get_active_certificate(cor_type)
    if certificate is None:
        return None
    return CertificateResponse.from_model(certificate, utcnow())


@router.get("", response_model=CertificateListResponse)
async def list_certificates(organization_id: str, db: Session = Depends(get_db)):
    certificates = CertificateService(db, organization_id).list_certificates()
    now = utcnow()
    return CertificateListResponse(
        items=[CertificateResponse.from_model(c, now) for c in certificates],
        total=len(certificates),
    )


@router.post("", response_model=CertificateResponse, status_code=status.HTTP_201_CREATED)
async def issue_certificate(
    organization_id: str,
    payload: CertificateIssueRequest,
    db: Session = Depends(get_db),
):
    """Issue a certificate; expiry is set three years after the issue date."""
    certificate = CertificateService(db, organization_id).issue_certificate(payload)
    return CertificateResponse.from_model(certificate, utcnow())


@router.get("/{certificate_id}", response_model=CertificateResponse)
async def get_certificate(organization_id: str, certificate_id: int, db: Session = Depends(get_db)):
    certificate = CertificateService(db, organization_id).get_certificate(certificate_id)
    return CertificateResponse.from_model(certificate, utcnow())


@router.post("/{certificate_id}/revoke", response_model=CertificateResponse)
async def revoke_certificate(
    organization_id: str,
    certificate_id: int,
    payload: CertificateRevokeRequest,
    db: Session = Depends(get_db),
):
    certificate = CertificateService(db, organization_id).revoke_certificate(certificate_id, payload.reason)
    return CertificateResponse.from_model(certificate, utcnow())
