"""
Connection settings for the event stream transport.
"""

from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings


class ConnectionSettings:
    """Manages event stream connection and reconnect policy."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int = 0) -> int:
        """Type-safe integer retrieval from settings."""
        value = self.settings.value(key, default)
        try:
            if value is None:
                return default
            return int(cast(str | int, value))
        except (ValueError, TypeError):
            return default

    @property
    def server_url(self) -> str:
        """Get the event stream URL."""
        return self._get_str("connection/server_url", "")

    @server_url.setter
    def server_url(self, value: str) -> None:
        """Set the event stream URL."""
        self.settings.setValue("connection/server_url", value.strip())
        self.settings.sync()

    @property
    def auto_connect(self) -> bool:
        """Check if the visualizer connects on start."""
        return self._get_bool("connection/auto_connect", True)

    @auto_connect.setter
    def auto_connect(self, value: bool) -> None:
        self.settings.setValue("connection/auto_connect", value)
        self.settings.sync()

    @property
    def auto_reconnect(self) -> bool:
        """Check if dropped connections are retried."""
        return self._get_bool("connection/auto_reconnect", True)

    @auto_reconnect.setter
    def auto_reconnect(self, value: bool) -> None:
        self.settings.setValue("connection/auto_reconnect", value)
        self.settings.sync()

    @property
    def reconnect_interval_ms(self) -> int:
        """Get delay before a reconnect attempt (100-60000 ms)."""
        value = self._get_int("connection/reconnect_interval_ms", 5000)
        return max(100, min(60000, value))

    @reconnect_interval_ms.setter
    def reconnect_interval_ms(self, value: int) -> None:
        """Set delay before a reconnect attempt (100-60000 ms)."""
        validated = max(100, min(60000, value))
        self.settings.setValue("connection/reconnect_interval_ms", validated)
        self.settings.sync()

    @property
    def max_reconnect_attempts(self) -> int:
        """Get maximum consecutive reconnect attempts (0 disables retries)."""
        return max(0, self._get_int("connection/max_reconnect_attempts", 10))

    @max_reconnect_attempts.setter
    def max_reconnect_attempts(self, value: int) -> None:
        self.settings.setValue("connection/max_reconnect_attempts", max(0, value))
        self.settings.sync()
