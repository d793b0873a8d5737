"""Storefront configuration storage."""

import logging
import threading
from typing import Any

from .errors import InvalidConfigError, StorefrontError
from .models import StorefrontConfig

log = logging.getLogger("storefront.config")

SECTIONS = {
    "shipping": {
        "freeShippingThreshold",
        "flatRate",
        "taxRate",
        "pickupLocation",
        "allowPayOnArrival",
    },
    "loyalty": {"enabled", "pointsPerDollar", "pointsToDollarRate"},
}
TOP_LEVEL_KEYS = {"storeName", "etransferEmail"}


class ConfigStore:
    """
    Holds the current StorefrontConfig.

    The config object is immutable; update() swaps in a new one. A checkout
    that took a snapshot() keeps pricing against it even if an admin edits
    the settings mid-calculation.
    """

    def __init__(self, config: StorefrontConfig):
        config.validate()
        self._lock = threading.Lock()
        self._config = config

    def snapshot(self) -> StorefrontConfig:
        """Return the current configuration."""
        with self._lock:
            return self._config

    def update(self, changes: dict[str, Any]) -> StorefrontConfig:
        """
        Merge a partial camelCase config into the current one.

        Args:
            changes: e.g. {"shipping": {"taxRate": 5}, "storeName": "Aether"}

        Returns:
            The new configuration.

        Raises:
            InvalidConfigError: On unknown keys or out-of-range values. The
                current configuration is left unchanged.
        """
        if not isinstance(changes, dict):
            raise InvalidConfigError("config", "expected an object")

        with self._lock:
            merged = self._config.to_dict()
            for key, value in changes.items():
                if key in SECTIONS:
                    if not isinstance(value, dict):
                        raise InvalidConfigError(key, "expected an object")
                    unknown = set(value) - SECTIONS[key]
                    if unknown:
                        raise InvalidConfigError(
                            f"{key}.{sorted(unknown)[0]}", "unknown setting"
                        )
                    merged[key].update(value)
                elif key in TOP_LEVEL_KEYS:
                    merged[key] = value
                else:
                    raise InvalidConfigError(key, "unknown setting")

            try:
                new_config = StorefrontConfig.from_dict(merged)
            except InvalidConfigError:
                raise
            except StorefrontError as e:
                raise InvalidConfigError(getattr(e, "field", None) or "config", str(e))
            new_config.validate()
            self._config = new_config

        log.info("Storefront config updated: %s", sorted(changes))
        return new_config
