"""
Publication du dernier score vers le widget.
"""
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Protocol, Sequence

from ready.domain.entities.readiness_score import ReadinessCategory, ReadinessScore

logger = logging.getLogger(__name__)


class WidgetPublisher(Protocol):
    def publish(self, scores: Sequence[ReadinessScore]) -> None:
        """`scores` : du plus recent au plus ancien."""


class JsonFileWidgetPublisher:
    """Ecrit l'instantane du widget dans un fichier JSON (remplacement atomique)."""

    def __init__(self, path: str, clock: Callable[[], datetime] = datetime.utcnow):
        self.path = Path(path)
        self.clock = clock

    def snapshot(self, scores: Sequence[ReadinessScore]) -> Dict[str, Any]:
        latest = scores[0] if scores else None
        return {
            "currentReadinessScore": latest.score if latest else None,
            "currentReadinessCategory": (
                latest.category.value if latest else ReadinessCategory.UNKNOWN.value
            ),
            "lastUpdateTimestamp": self.clock().isoformat(),
            "history": [
                {
                    "date": s.date.isoformat(),
                    "score": s.score,
                    "category": s.category.value,
                }
                for s in scores
            ],
        }

    def publish(self, scores: Sequence[ReadinessScore]) -> None:
        payload = self.snapshot(scores)
        if self.path.parent != Path(""):
            self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(f"Widget publie: {payload['currentReadinessScore']} ({self.path})")
