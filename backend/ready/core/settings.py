"""
Configuration centralisee pour le moteur Ready
Utilise pydantic-settings pour la gestion des variables d'environnement
"""
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator
from typing import List


class Settings(BaseSettings):
    """Configuration de l'application"""

    # Database
    DATABASE_URL: str = Field(
        default="sqlite:///./ready.db",
        description="URL de la base de données (SQLite en local, PostgreSQL en production)"
    )

    # Monitoring (Sentry)
    SENTRY_DSN: str = Field(
        default="",
        description="DSN Sentry pour le error tracking (vide = Sentry desactive)"
    )

    # CORS
    ALLOWED_ORIGINS: List[str] = Field(
        default=[],
        description="Origines autorisées pour CORS (configuré automatiquement selon ENVIRONMENT si vide)"
    )

    # Recalcul
    RECALC_DEBOUNCE_SECONDS: float = Field(
        default=1.0,
        ge=0,
        description="Fenetre de debounce des declenchements de recalcul (secondes)"
    )
    HISTORICAL_LOOKBACK_DAYS: int = Field(
        default=90,
        ge=1,
        description="Nombre de jours rejoues lors d'un recalcul historique"
    )
    RETENTION_DAYS: int = Field(
        default=365,
        ge=0,
        description="Age maximal (jours) des metriques et scores conserves (0 = pas de nettoyage)"
    )

    # Widget
    WIDGET_SNAPSHOT_PATH: str = Field(
        default="widget_snapshot.json",
        description="Fichier JSON lu par le widget (dernier score + historique recent)"
    )
    WIDGET_HISTORY_DAYS: int = Field(default=7, ge=1)

    # Garmin Connect (source biometrique)
    GARMIN_TOKEN_DIR: str = Field(
        default="",
        description="Repertoire des tokens garth (vide = pas de source live, metriques via l'API)"
    )

    # Application
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(
        default="",
        description="Niveau de logging (auto-configuré selon ENVIRONMENT si vide)"
    )

    @model_validator(mode="after")
    def _configure_environment(self) -> "Settings":
        """Configure DEBUG et LOG_LEVEL selon ENVIRONMENT."""
        is_prod = self.ENVIRONMENT == "production"
        # En production, forcer DEBUG=False
        if is_prod:
            self.DEBUG = False
        # LOG_LEVEL par défaut selon ENVIRONMENT
        if not self.LOG_LEVEL:
            self.LOG_LEVEL = "WARNING" if is_prod else "INFO"
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        return self

    @model_validator(mode="after")
    def _set_default_origins(self) -> "Settings":
        """Définit les origines CORS par défaut selon ENVIRONMENT si non configurées."""
        if not self.ALLOWED_ORIGINS and self.ENVIRONMENT != "production":
            self.ALLOWED_ORIGINS = [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ]
        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


def get_settings() -> Settings:
    """Récupère la configuration"""
    return Settings()
