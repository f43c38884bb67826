"""
Routes reglages : lecture, mise a jour partielle, remise a zero.

Chaque modification transmet le diff type au coordinateur : le score du jour
est recalcule immediatement, le replay historique part en tache de fond.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from ready.core.wiring import ReadinessServices
from ready.domain.entities.readiness_settings import ReadinessSettingsUpdate, SettingsChange
from ready.domain.errors import ReadinessError
from ready.domain.services.recalculation_coordinator import classify
from ready.api.routers._shared import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings(services: ReadinessServices = Depends(get_services)):
    return services.settings_store.get().model_dump(mode="json")


@router.patch("")
async def update_settings(
    body: ReadinessSettingsUpdate,
    services: ReadinessServices = Depends(get_services),
):
    """Met a jour les reglages fournis et declenche le recalcul requis."""
    try:
        change = services.settings_store.update(**body.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )
    return await _apply_change(services, change)


@router.post("/reset")
async def reset_settings(services: ReadinessServices = Depends(get_services)):
    """Restaure les reglages par defaut."""
    change = services.settings_store.reset_to_defaults()
    return await _apply_change(services, change)


async def _apply_change(services: ReadinessServices, change: SettingsChange) -> Dict[str, Any]:
    scope = classify(change)
    response: Dict[str, Any] = {
        "settings": change.current.model_dump(mode="json"),
        "changed_fields": sorted(f.value for f in change.fields),
        "recalculation": scope.value if scope else None,
        "today": None,
        "error": None,
    }
    # Les reglages sont enregistres meme si le calcul du jour echoue
    try:
        outcome = await services.coordinator.handle_settings_change(change)
    except ReadinessError as e:
        logger.info(f"Recalcul du jour impossible apres changement de reglages: {e.message}")
        response["error"] = e.to_dict()
    else:
        if outcome is not None:
            response["today"] = outcome.to_dict()
    return response
