"""Application wiring for the GBP audit service."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from gbp_audit.modules.audit import (
    AUDIT_CREDIT_COST,
    AuditOrchestrator,
    AuditRepository,
    CreditChecker,
    InMemoryAuditRepository,
    SignalProvider,
    SqlAlchemyAuditRepository,
    StaticCreditChecker,
    StaticSignalProvider,
)

logger = logging.getLogger(__name__)


class GBPAuditApp:
    """Central application class that wires the audit pipeline together.

    Usage::

        app = GBPAuditApp(signal_provider=my_provider, credit_checker=my_credits)
        app.initialize()
        result = await app.orchestrator.run_audit("user-1", "gbp-42")
        status = app.get_status()
    """

    def __init__(
        self,
        config_path: str = "config/settings.yaml",
        env_path: str = ".env",
        signal_provider: Optional[SignalProvider] = None,
        credit_checker: Optional[CreditChecker] = None,
        repository: Optional[AuditRepository] = None,
    ):
        self._config_path = config_path
        self._env_path = env_path
        self.config: dict[str, Any] = {}
        self._initialized = False
        self._signal_provider = signal_provider
        self._credit_checker = credit_checker
        self._repository = repository
        self._orchestrator: Optional[AuditOrchestrator] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load configuration and environment, then build the orchestrator."""
        if self._initialized:
            return

        env_file = Path(self._env_path)
        if env_file.exists():
            load_dotenv(env_file)
            logger.info("Loaded environment from %s", self._env_path)

        self.config = self._load_config()
        self._configure_logging()

        audit_cfg = self.config.get("audit", {})
        if self._repository is None:
            self._repository = self._build_repository()
        if self._credit_checker is None:
            self._credit_checker = StaticCreditChecker(
                default=int(audit_cfg.get("default_credit_balance", 0))
            )
        if self._signal_provider is None:
            logger.warning("No signal provider configured; audits will fail to fetch data.")
            self._signal_provider = StaticSignalProvider()

        self._orchestrator = AuditOrchestrator(
            signal_provider=self._signal_provider,
            credit_checker=self._credit_checker,
            repository=self._repository,
            credit_cost=int(audit_cfg.get("credit_cost", AUDIT_CREDIT_COST)),
        )
        self._initialized = True
        logger.info("GBPAuditApp initialised.")

    def _load_config(self) -> dict[str, Any]:
        """Load the YAML configuration file."""
        config_file = Path(self._config_path)
        if not config_file.exists():
            logger.warning("Config file not found: %s, using defaults.", self._config_path)
            return {}
        with open(config_file, "r", encoding="utf-8") as fh:
            config = yaml.safe_load(fh) or {}
        logger.info("Configuration loaded from %s", self._config_path)
        return config

    def _configure_logging(self) -> None:
        log_cfg = self.config.get("logging", {})
        level_name = os.getenv("LOG_LEVEL", log_cfg.get("level", "INFO"))
        logging.basicConfig(
            level=getattr(logging, str(level_name).upper(), logging.INFO),
            format=log_cfg.get("format", "%(asctime)s %(levelname)s %(name)s: %(message)s"),
        )

    def _build_repository(self) -> AuditRepository:
        backend = self.config.get("audit", {}).get("repository", "memory")
        if backend == "sql":
            from gbp_audit.database import init_db
            db_cfg = self.config.get("database", {})
            init_db(
                database_url=os.getenv("DATABASE_URL", db_cfg.get("url")),
                echo=db_cfg.get("echo", False),
            )
            return SqlAlchemyAuditRepository()
        if backend != "memory":
            raise ValueError(f"Unknown audit repository backend: {backend!r}")
        return InMemoryAuditRepository()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def orchestrator(self) -> AuditOrchestrator:
        self._ensure_initialized()
        return self._orchestrator

    def get_status(self) -> dict[str, Any]:
        """Return a summary of the wiring and recent run states."""
        return {
            "initialized": self._initialized,
            "config_path": self._config_path,
            "repository": type(self._repository).__name__ if self._repository else None,
            "credit_checker": type(self._credit_checker).__name__ if self._credit_checker else None,
            "signal_provider": type(self._signal_provider).__name__ if self._signal_provider else None,
            "runs": self._orchestrator.get_run_status() if self._orchestrator else {},
        }

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()
