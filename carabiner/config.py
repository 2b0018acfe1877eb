import os
import tempfile
import tomllib
from pathlib import Path

import tomlkit
from loguru import logger
from platformdirs import user_config_path
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import SharedSettings


def get_settings_path() -> Path:
    return user_config_path("carabiner") / "settings.toml"


class SettingsStore:
    """Load/save access to the persisted SharedSettings.

    Saves never patch the file in place: the document is written to a
    sibling temporary file which then replaces the target, so a reader sees
    either the previous or the new settings.
    """

    def __init__(self, settings_path: Path | None = None):
        self.settings_path = settings_path or get_settings_path()

    def load(self) -> SharedSettings:
        if not self.settings_path.exists():
            return SharedSettings()

        try:
            with self.settings_path.open("rb") as f:
                return SharedSettings.model_validate(tomllib.load(f))
        except (ValidationError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Settings parse error: {e}")

    def save(self, settings: SharedSettings) -> None:
        doc = tomlkit.document()
        for key, value in settings.model_dump(mode="json", by_alias=True, exclude_none=True).items():
            doc[key] = value

        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.settings_path.parent, prefix=f".{self.settings_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                tomlkit.dump(doc, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.settings_path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigurationError(f"Failed to save settings: {e}")
        logger.debug(f"Settings saved to {self.settings_path}")
