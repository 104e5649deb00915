"""
Application startup validation and initialization.

This module performs startup checks and creates the schema so the
application is properly configured before serving requests.
"""

import logging
import sys
from typing import List, Tuple

from sqlalchemy import text

from core.config import DEFAULT_JWT_SECRET, get_settings
from core.database import Base, engine

logger = logging.getLogger(__name__)


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.settings = get_settings()
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except Exception as e:
            self.errors.append(f"Database connection failed: {str(e)}")
            return False

    def check_environment_config(self) -> bool:
        """Warn about integrations that will run in degraded mode"""
        settings = self.settings
        if not settings.is_production and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
            self.warnings.append("Using development JWT_SECRET_KEY - change for production")
        if not settings.square_enabled:
            self.warnings.append("Square not configured - card payments and POS sync disabled")
        if not settings.twilio_enabled:
            self.warnings.append("Twilio not configured - SMS alerts disabled")
        if not settings.manager_phone:
            self.warnings.append("MANAGER_PHONE not set - staff alerts have no recipient")
        if not settings.huggingface_api_key:
            self.warnings.append("Inference API key not set - default recommendations only")
        return True

    def create_tables(self) -> bool:
        try:
            Base.metadata.create_all(bind=engine)
            return True
        except Exception as e:
            self.errors.append(f"Could not create database tables: {str(e)}")
            return False

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.create_tables),
        ]

        all_passed = True

        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            try:
                if not check_func():
                    all_passed = False
            except Exception as e:
                self.errors.append(f"{check_name} check failed with error: {str(e)}")
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks():
    """Run all startup validation checks"""
    settings = get_settings()
    logger.info("=" * 60)
    logger.info("Starting Restaurant POS Backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    if warnings:
        logger.warning("Startup Warnings:")
        for warning in warnings:
            logger.warning(f"  {warning}")

    if errors:
        logger.error("Startup Errors:")
        for error in errors:
            logger.error(f"  {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
