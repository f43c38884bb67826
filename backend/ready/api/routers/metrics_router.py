"""
Routes metriques : saisie manuelle d'une journee et consultation.
"""
import logging
from datetime import date as date_type, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ready.core.wiring import ReadinessServices
from ready.domain.entities.daily_metrics import DailyMetricsRead, DailyMetricsWrite
from ready.api.routers._shared import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])

DEFAULT_RANGE_DAYS = 30


@router.put("/{day}", response_model=DailyMetricsRead)
async def put_metrics(
    day: date_type,
    body: DailyMetricsWrite,
    services: ReadinessServices = Depends(get_services),
):
    """Enregistre les metriques d'une date (idempotent : une seule entree par date)."""
    fields = body.model_dump(exclude_unset=True)
    logger.info(f"Metriques {day}: {sorted(fields)}")
    return services.store.upsert_metrics(day, **fields)


@router.get("", response_model=List[DailyMetricsRead])
async def list_metrics(
    date_from: Optional[date_type] = Query(default=None),
    date_to: Optional[date_type] = Query(default=None),
    services: ReadinessServices = Depends(get_services),
):
    """Metriques de [date_from, date_to], par defaut les 30 derniers jours."""
    end = date_to or services.service.today()
    start = date_from or end - timedelta(days=DEFAULT_RANGE_DAYS - 1)
    return services.store.get_metrics_range(start, end)
