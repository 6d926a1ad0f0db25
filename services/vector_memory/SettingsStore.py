"""Owner of the vector memory settings snapshot."""

import json
import os
from typing import Any

from pydantic import ValidationError

from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import VectorSettings


class SettingsStore:
    """Holds the current VectorSettings and replaces it as a whole.

    Readers call get() once per operation and work on that snapshot. Writers
    go through update() or replace(), which validate a full new instance, so
    a failed update leaves the previous settings in place. When
    VECTORS_SETTINGS_FILE is set the settings are loaded from and saved to
    that JSON file.
    """

    def __init__(self, helper_config: HelperConfig, settings: VectorSettings | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._path = helper_config.get_string_val("VECTORS_SETTINGS_FILE", default="") or None
        self._settings = settings if settings is not None else self._load()

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get(self) -> VectorSettings:
        return self._settings

    ##########################################
    ################# SETTER #################
    ##########################################

    def update(self, changes: dict[str, Any]) -> VectorSettings:
        """Apply a partial update and return the new snapshot.

        Args:
            changes (dict[str, Any]): Field name -> new value. Unknown fields are ignored.

        Returns:
            VectorSettings: The validated new settings.

        Raises:
            pydantic.ValidationError: If the merged settings are invalid.
        """
        merged = {**self._settings.model_dump(), **changes}
        return self.replace(VectorSettings.model_validate(merged))

    def replace(self, settings: VectorSettings) -> VectorSettings:
        """Persist, then publish the new snapshot.

        Raises:
            OSError: If the settings file cannot be written. The previous settings stay active.
        """
        self._save(settings)
        self._settings = settings
        return settings

    ##########################################
    ############## PERSISTENCE ###############
    ##########################################

    def _load(self) -> VectorSettings:
        if not self._path or not os.path.isfile(self._path):
            return VectorSettings()
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            settings = VectorSettings.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            self.logging.error("Failed to load vector settings from '%s': %s. Using defaults.", self._path, e)
            return VectorSettings()
        self.logging.info("Loaded vector settings from '%s'.", self._path)
        return settings

    def _save(self, settings: VectorSettings) -> None:
        if not self._path:
            return
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self._path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(settings.model_dump_json(indent=2))
            os.replace(tmp_path, self._path)
        except OSError:
            self.logging.error("Failed to save vector settings to '%s'.", self._path)
            if os.path.isfile(tmp_path):
                os.remove(tmp_path)
            raise
        self.logging.debug("Saved vector settings to '%s'.", self._path)
