"""
Configuration de la base de données avec SQLModel
"""
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, SQLModel

from ready.core.settings import get_settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Construit l'engine SQLModel (SQLite partage entre threads)."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    # Base en memoire : une seule connexion partagee, sinon chaque session voit une base vide
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **kwargs)


settings = get_settings()

# Créer l'engine de base de données
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def create_db_and_tables(target_engine: Engine = engine):
    """Créer toutes les tables de la base de données"""
    # Import des tables pour enregistrer les métadonnées
    import ready.domain.entities  # noqa: F401

    SQLModel.metadata.create_all(target_engine)
