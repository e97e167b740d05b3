"""Hot-reloadable script holder.

The host owns one ``ScriptHandle`` per script file. Each reload builds a brand
new top-level scope and only replaces the current one when the whole load
succeeded, so a broken edit leaves the previous configuration active.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .errors import LibrettoError, LoadError
from .runtime import call_function, decode_binding, load_file
from .scope import Scope

logger: logging.Logger = logging.getLogger(__name__)

ScopeSetup = Callable[[Scope], None]


class ScriptHandle:
    def __init__(self, path: Union[str, Path], *, setup: Optional[ScopeSetup] = None):
        self.path = Path(path)
        self.setup = setup
        self.last_error: Optional[LibrettoError] = None
        self._scope: Optional[Scope] = None
        self._mtime: Optional[float] = None
        self._failed_mtime: Optional[float] = None

    @property
    def loaded(self) -> bool:
        return self._scope is not None

    def snapshot(self) -> Scope:
        """The current scope; keep using it for decodes already under way."""
        if self._scope is None:
            raise RuntimeError(f"{self.path} has not been loaded")

        return self._scope

    def _stat_mtime(self) -> float:
        try:
            return self.path.stat().st_mtime
        except OSError as exc:
            error = LoadError(self.path, exc.strerror or str(exc))
            self.last_error = error
            raise error from exc

    def reload(self) -> Scope:
        mtime = self._stat_mtime()
        fresh = Scope()
        if self.setup is not None:
            self.setup(fresh)

        try:
            load_file(self.path, fresh)
        except LibrettoError as exc:
            self.last_error = exc
            self._failed_mtime = mtime
            logger.warning("reload of %s failed, keeping previous scope: %s", self.path, exc)
            raise

        self._scope = fresh
        self._mtime = mtime
        self._failed_mtime = None
        self.last_error = None
        logger.debug("loaded %s", self.path)

        return fresh

    def reload_if_changed(self) -> bool:
        """Reload when the file changed since the last attempt; True if swapped."""
        mtime = self._stat_mtime()
        if self._scope is not None and mtime == self._mtime:
            return False
        if mtime == self._failed_mtime:
            return False

        self.reload()
        return True

    def decode(self, path: str, target: Any = Any) -> Any:
        return decode_binding(self.snapshot(), path, target)

    def call(self, name: str, *args: Any, returns: Any = Any) -> Any:
        return call_function(self.snapshot(), name, *args, returns=returns)
