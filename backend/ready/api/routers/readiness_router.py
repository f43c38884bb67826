"""
Routes readiness : score du jour, historique, recalcul manuel, statut.
Routes = validation + delegation au coordinateur. Pas de logique metier ici.
"""
import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from ready.core.wiring import ReadinessServices
from ready.domain.entities.readiness_score import ReadinessCategory, ReadinessScoreRead
from ready.domain.services.recalculation_coordinator import RecalculationScope, RunStatus
from ready.api.routers._shared import get_services, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/readiness", tags=["readiness"])


@router.get("/today")
async def get_today(services: ReadinessServices = Depends(get_services)):
    """Score du jour, ou categorie Unknown si aucun score n'a encore ete calcule."""
    today = services.service.today()
    score = services.store.get_score(today)
    if score is None:
        return {
            "date": today.isoformat(),
            "score": None,
            "category": ReadinessCategory.UNKNOWN.value,
            "description": ReadinessCategory.UNKNOWN.description,
        }
    payload = ReadinessScoreRead.model_validate(score).model_dump(mode="json")
    payload["description"] = score.category.description
    return payload


@router.get("/scores", response_model=List[ReadinessScoreRead])
async def get_scores(
    days: int = Query(default=30, ge=1, le=365),
    services: ReadinessServices = Depends(get_services),
):
    """Scores des `days` derniers jours, du plus recent au plus ancien."""
    today = services.service.today()
    scores = services.store.get_scores(today - timedelta(days=days - 1), today)
    return list(reversed(scores))


@router.post("/recalculate")
@limiter.limit("10/minute")
async def recalculate(
    request: Request,
    scope: RecalculationScope = Query(default=RecalculationScope.TODAY),
    days: Optional[int] = Query(default=None, ge=1, le=730),
    wait: bool = Query(default=False, description="Attendre la fin du recalcul"),
    services: ReadinessServices = Depends(get_services),
):
    """Declenche un recalcul manuel (debounce, remplace le recalcul en cours)."""
    coordinator = services.coordinator
    coordinator.request_recalculation(scope, days)
    logger.info(f"Recalcul {scope.value} demande (days={days}, wait={wait})")

    if wait:
        result = await coordinator.wait()
        if result is None:
            return JSONResponse(content=coordinator.status())
        if result.status is RunStatus.FAILED and result.error is not None:
            raise result.error
        return JSONResponse(content=result.to_dict())

    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=coordinator.status())


@router.get("/status")
async def get_status(services: ReadinessServices = Depends(get_services)):
    """Etat du coordinateur, progression et dernier recalcul."""
    return services.coordinator.status()


@router.post("/cancel")
async def cancel(services: ReadinessServices = Depends(get_services)):
    """Annule le recalcul en attente ou en cours."""
    cancelled = services.coordinator.cancel()
    return {"cancelled": cancelled, **services.coordinator.status()}
