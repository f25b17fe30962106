"""
API v1 router.
"""
from fastapi import APIRouter

from cor_engine.api.v1.endpoints import activity, auditors, audits, certificates, cycle, deficiencies, health

api_router = APIRouter()

# Health check endpoint (no prefix, so it's /api/v1/health)
api_router.include_router(health.router, tags=["health"])

# Everything else is partitioned by organization
ORG_PREFIX = "/organizations/{organization_id}"

api_router.include_router(audits.router, prefix=f"{ORG_PREFIX}/audits", tags=["audits"])
api_router.include_router(certificates.router, prefix=f"{ORG_PREFIX}/certificates", tags=["certificates"])
api_router.include_router(auditors.router, prefix=f"{ORG_PREFIX}/auditors", tags=["auditors"])
api_router.include_router(deficiencies.router, prefix=f"{ORG_PREFIX}/deficiencies", tags=["deficiencies"])
api_router.include_router(cycle.router, prefix=ORG_PREFIX, tags=["cycle"])
api_router.include_router(activity.router, prefix=f"{ORG_PREFIX}/activity", tags=["activity"])
