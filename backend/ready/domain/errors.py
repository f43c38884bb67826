"""
Erreurs du calcul de disponibilite.

Chaque erreur porte un message affichable et une suggestion de resolution
(``recovery_suggestion``) que l'appelant presente a l'utilisateur.
"""
from datetime import date as date_type
from typing import Any, Dict, List, Optional


class ReadinessError(Exception):
    """Erreur de base du domaine readiness."""

    #: bloque le calcul (par opposition a une information)
    is_critical = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def recovery_suggestion(self) -> Optional[str]:
        return None

    @property
    def should_display(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "detail": self.message,
            "recovery_suggestion": self.recovery_suggestion,
            "critical": self.is_critical,
        }


class BaselineUnavailable(ReadinessError):
    """Pas assez de jours valides pour etablir une baseline."""

    def __init__(self, days_available: int, days_needed: int, metric: str = "HRV"):
        self.days_available = days_available
        self.days_needed = days_needed
        self.metric = metric
        super().__init__(
            f"{metric} baseline not available. Currently have {days_available} days of data, "
            f"but need at least {days_needed} days to establish baseline."
        )

    @property
    def remaining_days(self) -> int:
        return max(self.days_needed - self.days_available, 0)

    @property
    def recovery_suggestion(self) -> str:
        return (
            f"Keep wearing your device consistently to collect the remaining "
            f"{self.remaining_days} days of data needed."
        )


class InsufficientData(ReadinessError):
    """Metriques obligatoires absentes pour le calcul du jour."""

    def __init__(self, missing: List[str], available: Optional[List[str]] = None):
        self.missing = list(missing)
        self.available = list(available or [])
        if not self.missing:
            message = "Insufficient data to calculate readiness score."
        else:
            available_text = (
                f"Available metrics: {', '.join(self.available)}"
                if self.available else "No metrics available."
            )
            message = f"Missing required data: {', '.join(self.missing)}. {available_text}"
        super().__init__(message)

    @property
    def recovery_suggestion(self) -> str:
        return (
            "Try again later when more health data may be available, or check that "
            "your devices are properly synchronized."
        )


class HistoricalDataMissing(ReadinessError):
    """Aucune metrique stockee pour une date passee."""

    def __init__(self, date: date_type, missing: Optional[List[str]] = None):
        self.date = date
        self.missing = list(missing or ["All metrics"])
        super().__init__(f"Missing health data for {date.isoformat()}: {', '.join(self.missing)}")

    @property
    def recovery_suggestion(self) -> str:
        return "This data may not be available from your health devices for this date."


class HistoricalDataIncomplete(ReadinessError):
    """Donnees partielles pour une date.

    ``partial=True`` : un score a tout de meme ete produit (information).
    ``partial=False`` : aucun score n'a pu etre produit.
    """

    def __init__(self, date: date_type, missing: List[str], partial: bool):
        self.date = date
        self.missing = list(missing)
        self.partial = partial
        super().__init__(
            f"Incomplete health data for {date.isoformat()}. Missing: {', '.join(self.missing)}"
        )

    @property
    def is_critical(self) -> bool:
        return not self.partial

    @property
    def should_display(self) -> bool:
        # Un resultat partiel reste exploitable
        return not self.partial

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["partial"] = self.partial
        return payload


class DataProcessingFailed(ReadinessError):
    """Echec inattendu d'un composant du pipeline."""

    def __init__(self, component: str, reason: str):
        self.component = component
        self.reason = reason
        super().__init__(f"Failed to process {component}: {reason}")


class NoBiometricData(ReadinessError):
    """La source biometrique n'a aucune donnee pour la fenetre demandee."""

    is_critical = False

    def __init__(self, metric: str, detail: str = ""):
        self.metric = metric
        suffix = f" ({detail})" if detail else ""
        super().__init__(f"No {metric} data available{suffix}")
