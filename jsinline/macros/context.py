"""
Host context
============
What the engine needs from whatever is driving it (a bundler plugin, the
CLI, a test): module path resolution, file reads, a diagnostics channel,
dependency registration and the cacheable flag.

``FileSystemContext`` is the stock implementation over the local disk.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Protocol

from jsinline.core.config import get_settings
from jsinline.schemas import Diagnostic

logger = logging.getLogger(__name__)


class HostContext(Protocol):
    def resolve_module_path(self, reference: str) -> str:
        """Absolute path of *reference*, relative to the file being expanded."""

    def read_file(self, path: str) -> Optional[str]:
        """
        Contents of *path* under the first matching extension, or None.

        Raises ``UnicodeDecodeError`` when the file exists but is not text in
        the expected encoding.
        """

    def report_diagnostic(self, message: str) -> None:
        """Non-fatal error report; expansion continues afterwards."""

    def register_file_dependency(self, path: str) -> None:
        """The output depends on *path*: rebuild when it changes."""

    def mark_cacheable(self) -> None:
        """Same input, same output."""


class FileSystemContext:
    """
    Resolve and read modules relative to *context_dir*.

    Parameters
    ----------
    context_dir : str or Path
        Directory of the file being expanded.
    extensions : iterable of str, optional
        Suffixes tried, in order, when reading a module.  Defaults to
        ``Settings.extensions``.
    origin : str, optional
        Name of the file being expanded, attached to each diagnostic.
    """

    def __init__(
        self,
        context_dir: str | Path,
        extensions: Iterable[str] | None = None,
        origin: str | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self.context_dir = Path(context_dir)
        self.extensions = list(extensions) if extensions is not None else list(get_settings().extensions)
        self.origin = origin
        self.encoding = encoding
        self.diagnostics: list[Diagnostic] = []
        self.dependencies: list[str] = []
        self.cacheable = False

    # ------------------------------------------------------------ HostContext

    def resolve_module_path(self, reference: str) -> str:
        return os.path.abspath(os.path.join(self.context_dir, reference))

    def read_file(self, path: str) -> Optional[str]:
        for ext in self.extensions:
            candidate = Path(path + ext)
            if not candidate.is_file():
                continue
            try:
                return candidate.read_text(encoding=self.encoding)
            except OSError:
                logger.debug("Could not read %s", candidate, exc_info=True)
        return None

    def report_diagnostic(self, message: str) -> None:
        logger.debug("Diagnostic for %s: %s", self.origin or "<source>", message)
        self.diagnostics.append(Diagnostic(message=message, origin=self.origin))

    def register_file_dependency(self, path: str) -> None:
        if path not in self.dependencies:
            self.dependencies.append(path)

    def mark_cacheable(self) -> None:
        self.cacheable = True
