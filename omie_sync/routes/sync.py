from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from omie_sync.application import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/omie", tags=["sync"])


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync.service


@router.post("/automatizar")
async def run_synchronisation(service: SyncService = Depends(get_sync_service)) -> dict:
    """Run one full pass of the view into Omie and return the run summary."""
    logger.info("Synchronisation requested via /api/omie/automatizar")
    summary = await service.run()
    return summary.to_response()
