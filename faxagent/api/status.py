import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.audit import AuditEvent, AuditLogger
from ..core.retry_ledger import RetryLedger
from ..dependencies import get_audit_logger, get_fax_drop_service, get_retry_ledger
from ..models import ScanName, ScanResult, ServiceStatus
from ..services.fax_drop_service import FaxDropService

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/status", response_model=ServiceStatus)
async def get_service_status(
    service: FaxDropService = Depends(get_fax_drop_service),
):
    """Scan intervals, last results and retry ledger size."""
    return service.get_status()


@router.get("/retry-ledger")
async def get_retry_ledger_entries(ledger: RetryLedger = Depends(get_retry_ledger)):
    entries = ledger.snapshot()
    return {"count": len(entries), "entries": entries}


@router.get("/audit/recent", response_model=List[AuditEvent])
async def get_recent_audit_events(
    limit: int = Query(50, ge=1, le=500),
    audit_logger: AuditLogger = Depends(get_audit_logger),
):
    return audit_logger.recent(limit)


@router.post("/scans/{scan_name}/run", response_model=ScanResult)
async def run_scan(
    scan_name: str,
    service: FaxDropService = Depends(get_fax_drop_service),
):
    """Kør et scan med det samme, uden at vente på næste interval."""
    try:
        name = ScanName(scan_name)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown scan: {scan_name}")

    logging.info(
        f"Manual scan via API: {name.value}",
        extra={"operation": "api_run_scan", "scan": name.value},
    )
    return await service.run_scan_now(name)
