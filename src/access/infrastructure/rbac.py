"""
RBAC Configuration Cache
========================

Process-wide role -> permission table loaded from YAML.

File format:

    roles:
      admin_kota:
        description: City administrator
        permissions: ["*"]
      teknisi:
        permissions: ["tickets.update_progress", "tickets.read"]

Staleness window: a snapshot is served for at most ``ttl_seconds`` before
the next read reloads it. A watchdog observer on the file's directory
reloads immediately on modification, so in practice edits show up within
the observer's latency and the TTL only matters where inotify is missing.
"""

import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from src.access.domain import PermissionSet
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RoleConfig(BaseModel):
    """One role entry from the YAML file."""
    permissions: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class RBACConfig(BaseModel):
    """Parsed role table."""
    roles: Dict[str, RoleConfig] = Field(default_factory=dict)


class RBACFileHandler(FileSystemEventHandler):
    """Watchdog event handler that reloads the cache when the file changes."""

    def __init__(self, manager: "RBACConfigManager", config_path: Path):
        self.manager = manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("RBAC file changed", extra={"path": str(event.src_path)})
            self.manager.reload()


class RBACConfigManager:
    """
    Thread-safe read-through cache of role permissions.

    Reads never block on I/O unless the snapshot is older than the TTL.
    A failed reload keeps serving the previous snapshot.
    """

    def __init__(self, ttl_seconds: int = 300):
        self._ttl_seconds = ttl_seconds
        self._config = RBACConfig()
        self._loaded_at: Optional[float] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> RBACConfig:
        """Initial load."""
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
            self._loaded_at = time.monotonic()
        logger.info("RBAC cache loaded", extra={"roles": len(config.roles)})
        return config

    def _load_from_file(self, path: Path) -> RBACConfig:
        if not path.exists():
            logger.warning("RBAC file not found, every role is denied", extra={"path": str(path)})
            return RBACConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return RBACConfig(**data)

    def reload(self) -> bool:
        """Reload the role table from disk. Returns False when the reload failed."""
        if self._path is None:
            return False

        try:
            config = self._load_from_file(self._path)
        except Exception as e:
            logger.error("Failed to reload RBAC config", extra={"error": str(e)})
            return False

        with self._lock:
            self._config = config
            self._loaded_at = time.monotonic()
        logger.info("RBAC cache reloaded", extra={"roles": len(config.roles)})
        return True

    def _is_stale(self) -> bool:
        if self._path is None or self._loaded_at is None:
            return False
        return time.monotonic() - self._loaded_at >= self._ttl_seconds

    def permissions_for(self, role: Optional[str]) -> PermissionSet:
        """Permissions granted to ``role``; unknown roles get none."""
        if self._is_stale():
            self.reload()

        with self._lock:
            role_config = self._config.roles.get(role or "")

        if role_config is None:
            return PermissionSet()
        return PermissionSet.of(role_config.permissions)

    def has_role(self, role: str) -> bool:
        with self._lock:
            return role in self._config.roles

    def start_watching(self) -> None:
        """Reload on file modification. No-op when the file does not exist."""
        if self._path is None:
            raise RuntimeError("RBAC config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("RBAC file missing, skipping file watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                RBACFileHandler(self, self._path),
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Watching RBAC file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, relying on TTL reloads", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def config(self) -> RBACConfig:
        with self._lock:
            return self._config
