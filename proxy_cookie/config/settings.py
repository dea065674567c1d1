import os
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from proxy_cookie.core.errors import ConfigurationError
from proxy_cookie.core.rewrite_chain import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    rules: dict[str, Any]
    regex_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "WARNING"
    upstream_app: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080
    admin_enabled: bool = True


def load_rules(path: Optional[str] = None, inline: Optional[str] = None) -> dict[str, Any]:
    """Read the cookie rewrite rules from a JSON file, or inline JSON text."""
    if path:
        logger.info(f"Loading cookie rewrite rules from {path}")
        try:
            with open(path, encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigurationError(f"cannot read rule file {path}: {e}") from e
        source = path
    elif inline:
        raw, source = inline, "PROXY_COOKIE_RULES"
    else:
        return {}

    try:
        rules = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"invalid JSON in {source}: {e}") from e
    if not isinstance(rules, dict):
        raise ConfigurationError(f"{source} must hold a JSON object")
    return rules


def load_settings() -> Settings:
    """Build settings from the environment; call load_dotenv() beforehand."""
    timeout = os.getenv("PROXY_COOKIE_REGEX_TIMEOUT", str(DEFAULT_TIMEOUT))
    port = os.getenv("PORT", "8080")
    try:
        regex_timeout = float(timeout)
        port_number = int(port)
    except ValueError as e:
        raise ConfigurationError(f"invalid numeric setting: {e}") from e
    if regex_timeout <= 0:
        raise ConfigurationError("PROXY_COOKIE_REGEX_TIMEOUT must be positive")

    return Settings(
        rules=load_rules(os.getenv("PROXY_COOKIE_CONFIG"), os.getenv("PROXY_COOKIE_RULES")),
        regex_timeout=regex_timeout,
        log_level=os.getenv("PROXY_COOKIE_LOG_LEVEL", "WARNING"),
        upstream_app=os.getenv("UPSTREAM_APP"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=port_number,
        admin_enabled=os.getenv("ADMIN_ENABLED", "true").lower() in TRUE_VALUES,
    )
