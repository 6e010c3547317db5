"""User preferences.

Settings are a typed struct. They are persisted as strings under a fixed
allow-list of storage keys, which is also the set of keys restored from an
import file. Keys outside the allow-list are ignored on write-back.
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)

# field name -> storage key
SETTINGS_KEYS: Dict[str, str] = {
    "nav_mode": "exam-tracker-nav-mode",
    "eye_care_enabled": "eye-care-enabled",
    "notify_change_enabled": "notify-change-enabled",
    "page_size": "page-size",
    "theme": "theme",
    "theme_switch_type": "theme-switch-type",
    "other_switch_type": "other-switch-type",
}

ALLOWED_SETTINGS_KEYS = frozenset(SETTINGS_KEYS.values())
_FIELD_FOR_KEY = {key: name for name, key in SETTINGS_KEYS.items()}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass
class Settings:
    """Typed user settings with documented defaults."""

    nav_mode: str = "sidebar"
    eye_care_enabled: bool = False
    notify_change_enabled: bool = True
    page_size: int = 10
    theme: str = "light"
    theme_switch_type: str = "default"
    other_switch_type: str = "default"

    @classmethod
    def from_storage_map(cls, values: Mapping[str, Any]) -> "Settings":
        """Build settings from storage-keyed string values.

        Unknown keys are ignored. Values that fail to parse keep the default.
        """
        return cls().with_updates(values)

    def to_storage_map(self) -> Dict[str, str]:
        """Storage-keyed string values, as written by the original client."""
        result = {}
        for name, value in asdict(self).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            result[SETTINGS_KEYS[name]] = str(value)
        return result

    def with_updates(self, values: Mapping[str, Any]) -> "Settings":
        """Return a copy with allow-listed storage keys from ``values`` applied.

        A value that fails to parse leaves the current setting in place.
        """
        updated = replace(self)
        for key, value in values.items():
            name = _FIELD_FOR_KEY.get(key)
            if name is None:
                logger.debug("Ignoring setting outside allow-list: %s", key)
                continue
            if value is None:
                continue
            try:
                setattr(updated, name, _parse_value(name, getattr(updated, name), value))
            except ValueError:
                logger.warning("Ignoring invalid value %r for setting %s", value, key)
        return updated


def _parse_value(name: str, default: Any, raw: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"{name} must be a boolean")
    if isinstance(default, int):
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise ValueError(f"{name} must be an integer")
        if value <= 0:
            raise ValueError(f"{name} must be positive")
        return value
    return str(raw)


def parse_setting(key: str, raw: Any) -> Any:
    """Parse ``raw`` for an allow-listed storage key.

    Raises:
        KeyError: If ``key`` is not an allow-listed setting
        ValueError: If the value does not parse
    """
    name = _FIELD_FOR_KEY[key]
    return _parse_value(name, getattr(Settings(), name), raw)


def settings_key_for(name_or_key: str) -> str:
    """Resolve a field name or storage key to the storage key.

    Raises:
        KeyError: If the name is not an allow-listed setting
    """
    if name_or_key in ALLOWED_SETTINGS_KEYS:
        return name_or_key
    normalized = name_or_key.replace("-", "_")
    if normalized in SETTINGS_KEYS:
        return SETTINGS_KEYS[normalized]
    raise KeyError(name_or_key)
