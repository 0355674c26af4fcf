"""System diagnostics endpoint: classifies why sign-in may be failing."""

from fastapi import APIRouter, HTTPException, status

from hotelhub.api.deps import Services
from hotelhub.auth.diagnostics import DiagnosticReport
from hotelhub.core.config import get_settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/diagnostics", response_model=DiagnosticReport)
async def diagnostics(services: Services) -> DiagnosticReport:
    """Run the read-only probe: database, tables, provider session, test accounts.

    Unauthenticated so it stays usable while sign-in is broken; disable with
    ``DIAGNOSTICS_ENABLED=false``.
    """
    if not get_settings().diagnostics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return await services.probe.diagnose()
