"""Default configuration values for bundle tooling.

Config hierarchy: .env / environment → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # Bundle archive
    # -------------------------------------------------------------------------
    "CPRES_COMPRESSION": "deflated",  # stored, deflated, bzip2, lzma
    "CPRES_COMPRESS_LEVEL": 6,
    "CPRES_TEMP_PREFIX": ".cpres-",

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    "CPRES_LOG_LEVEL": "INFO",
    "CPRES_LOG_JSON": False,
}


def get_default(key: str) -> Any:
    """Get default value for a config key.

    Args:
        key: Configuration key

    Returns:
        Default value or None if not defined
    """
    return DEFAULTS.get(key)
