from pathlib import Path
from typing import Any, Dict, Optional

from irisfinder.core.config import FinderConfig
from irisfinder.utils.file_io import read_json, write_json


class ConfigManager:
    """Dotted-key view over a JSON settings file (e.g. ``finder.min_pupil_radius``)."""

    def __init__(self, path: Optional[Path] = None, data: Optional[Dict] = None):
        self.config_path = Path(path) if path else None
        self._config = {}
        if data:
            self._config = data
        elif self.config_path and self.config_path.exists():
            self._config = read_json(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        val = self._config
        for k in key.split("."):
            if not isinstance(val, dict) or k not in val:
                return default
            val = val[k]
        return val

    def set(self, key: str, value: Any):
        keys = key.split(".")
        val = self._config
        for k in keys[:-1]:
            val = val.setdefault(k, {})
        val[keys[-1]] = value

    def save(self, path: Optional[Path] = None):
        target = path or self.config_path
        if target:
            write_json(self._config, target)

    def finder_config(self) -> FinderConfig:
        return FinderConfig.from_dict(self.get("finder", {}))
