# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Validate that all required environment variables are set.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.DATABASE_URL:
        missing.append("DATABASE_URL")
    if not settings.JWT_SECRET_KEY:
        missing.append("JWT_SECRET_KEY")

    # The default secret is only acceptable outside production
    if settings.ENV == "production" and settings.JWT_SECRET_KEY == "change-me":
        missing.append("JWT_SECRET_KEY (default value in production)")

    return missing


def validate_optional_config() -> List[str]:
    """
    Validate optional but recommended configuration.
    Returns list of missing optional variables (warnings only).
    """
    warnings = []

    if not all([settings.SMTP_HOST, settings.SMTP_PORT, settings.SMTP_USER, settings.SMTP_PASS]):
        warnings.append("SMTP_HOST/SMTP_PORT/SMTP_USER/SMTP_PASS (expiry and rejection emails disabled)")
    if not settings.SMS_GATEWAY_URL:
        warnings.append("SMS_GATEWAY_URL (expiry SMS disabled)")

    return warnings


def validate_config_on_startup():
    """
    Validate configuration on application startup.
    Raises RuntimeError if critical config is missing.
    Logs warnings for optional config.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation passed")
