#!/usr/bin/env python3
"""
Script CLI du moteur Ready
Calcul du jour, recalcul historique, nettoyage de retention, affichage des reglages
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Ajouter le répertoire parent au path pour les imports
sys.path.append(str(Path(__file__).parent.parent))

from ready.core.database import build_engine, create_db_and_tables
from ready.core.logging_config import configure_logging
from ready.core.settings import Settings, get_settings
from ready.core.wiring import ReadinessServices, build_biometric_source, build_services
from ready.domain.errors import ReadinessError
from ready.domain.services.recalculation_coordinator import Progress

logger = logging.getLogger(__name__)


class ReadinessCLI:
    """Interface CLI du calcul de disponibilite"""

    def __init__(self, settings: Settings, services: Optional[ReadinessServices] = None):
        self.settings = settings
        if services is None:
            engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
            create_db_and_tables(engine)
            services = build_services(engine, settings, source=build_biometric_source(settings))
        self.services = services
        self.services.coordinator.on_progress = self._print_progress

    def today(self) -> Dict[str, Any]:
        """Calcule le score du jour."""
        outcome = asyncio.run(self.services.coordinator.run_today())
        logger.info(f"✅ Score du jour: {outcome.score.score:.1f} ({outcome.score.category.value})")
        return outcome.to_dict()

    def recalculate(self, days: int) -> Dict[str, Any]:
        """Rejoue les `days` derniers jours."""
        logger.info(f"🚀 Recalcul historique sur {days} jours")
        result = asyncio.run(self.services.coordinator.run_historical(days=days))
        return result.to_dict()

    def cleanup(self, days: int) -> Dict[str, Any]:
        """Supprime metriques et scores plus anciens que `days` jours."""
        deleted = self.services.store.delete_older_than(days, self.services.service.today())
        logger.info(f"🧹 {deleted['metrics']} metriques et {deleted['scores']} scores supprimes")
        return {"metrics": deleted["metrics"], "scores": deleted["scores"], "cutoff": deleted["cutoff"].isoformat()}

    def show_settings(self) -> Dict[str, Any]:
        return self.services.settings_store.get().model_dump(mode="json")

    @staticmethod
    def _print_progress(progress: Progress) -> None:
        print(f"[{progress.fraction * 100:5.1f}%] {progress.label}", file=sys.stderr)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"doit etre >= 1 (recu {value})")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Moteur de score de disponibilite (Ready)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("today", help="Calcule le score du jour")

    recalc = subparsers.add_parser("recalculate", help="Rejoue l'historique des scores")
    recalc.add_argument("--days", type=positive_int, default=None, help="Nombre de jours (defaut: HISTORICAL_LOOKBACK_DAYS)")

    cleanup = subparsers.add_parser("cleanup", help="Applique la politique de retention")
    cleanup.add_argument("--days", type=positive_int, default=None, help="Age maximal en jours (defaut: RETENTION_DAYS)")

    subparsers.add_parser("settings", help="Affiche les reglages courants")
    return parser


def main(argv: Optional[List[str]] = None, cli: Optional[ReadinessCLI] = None) -> int:
    args = build_parser().parse_args(argv)
    if cli is None:
        settings = get_settings()
        configure_logging(settings, log_file="")
        cli = ReadinessCLI(settings)

    try:
        if args.command == "today":
            output = cli.today()
        elif args.command == "recalculate":
            output = cli.recalculate(args.days or cli.settings.HISTORICAL_LOOKBACK_DAYS)
        elif args.command == "cleanup":
            output = cli.cleanup(args.days or cli.settings.RETENTION_DAYS)
        else:
            output = cli.show_settings()
    except ReadinessError as e:
        logger.error(f"❌ {e.message}")
        print(json.dumps(e.to_dict(), ensure_ascii=False, indent=2))
        return 1

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
