from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .timing.config import CONFIG_VERSION, TimingConfig, validate_config

logger = logging.getLogger(__name__)


class ConfigProvider:
    """
    YAML-backed timing configuration.

    Holds the last good TimingConfig. Load / save failures are logged and never
    raised; the caller keeps whatever config it already has (defaults on first run).
    """

    def __init__(self, config_path: str | Path) -> None:
        self._path = Path(config_path)
        self._ref: TimingConfig = TimingConfig.default()
        self._last_stamp: Optional[Tuple[int, int]] = None
        self._last_hash: Optional[str] = None

        self.force_reload()

    @property
    def path(self) -> Path:
        return self._path

    def snapshot(self) -> TimingConfig:
        return self._ref

    def load(self) -> Optional[TimingConfig]:
        """Read the file. None if it is absent, unreadable or invalid."""
        if not self._path.exists():
            logger.info(f"No timing config at {self._path}, using defaults")
            return None
        try:
            return TimingConfig.from_yaml(self._path)
        except Exception as e:
            logger.warning(f"Timing config load failed: {e}")
            return None

    def force_reload(self) -> bool:
        cfg = self.load()
        if self._path.exists():
            # remember bad files too, so they are not re-parsed until they change
            self._last_stamp = self._safe_file_stamp()
            self._last_hash = self._safe_file_hash()
        if cfg is None:
            return False
        self._ref = cfg
        logger.info("Timing config reloaded")
        return True

    def reload_if_changed(self) -> bool:
        stamp = self._safe_file_stamp()
        if stamp is None:
            return False

        if self._last_stamp is not None and stamp == self._last_stamp:
            # mtime 在部分平台上精度不稳定，补充 hash 判定内容变化
            current_hash = self._safe_file_hash()
            if current_hash is None or current_hash == self._last_hash:
                return False

        return self.force_reload()

    def save(self, cfg: TimingConfig) -> bool:
        problems = validate_config(cfg)
        if problems:
            logger.warning(f"Refusing to save invalid timing config: {'; '.join(problems)}")
            return False

        payload = {"version": CONFIG_VERSION, **cfg.to_dict()}
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp_path, self._path)
        except Exception as e:
            logger.warning(f"Timing config save failed: {e}")
            return False

        self._ref = cfg
        self._last_stamp = self._safe_file_stamp()
        self._last_hash = self._safe_file_hash()
        logger.info(f"Timing config saved to {self._path}")
        return True

    def _safe_file_stamp(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self._path.stat()
            return stat.st_mtime_ns, stat.st_size
        except Exception as e:
            logger.debug(f"Timing config stat failed: {e}")
            return None

    def _safe_file_hash(self) -> Optional[str]:
        try:
            data = self._path.read_bytes()
            return hashlib.sha256(data).hexdigest()
        except Exception as e:
            logger.warning(f"Timing config hash failed: {e}")
            return None
