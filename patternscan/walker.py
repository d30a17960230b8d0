"""File-system walker producing scan targets for the CLI host."""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from patternscan.core.models import ScanTarget


@dataclass(slots=True)
class WalkStats:
    """What the walker saw, for the end-of-run summary."""

    read: int = 0
    skipped: dict[str, int] = field(default_factory=dict)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1


class TargetWalker:
    """Collect readable text files under one or more roots.

    Unreadable, oversized and binary files are logged and left out; the
    scanner core never sees them.
    """

    def __init__(
        self,
        *,
        include_extensions: Iterable[str],
        exclude_dirs: Iterable[str] = (),
        max_file_bytes: int = 1_000_000,
    ) -> None:
        self._extensions = {ext.lower() for ext in include_extensions}
        self._exclude = tuple(exclude_dirs)
        self._max_bytes = max_file_bytes
        self.stats = WalkStats()

    def _excluded_dir(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self._exclude)

    def _wanted(self, path: Path) -> bool:
        return not self._extensions or path.suffix.lower() in self._extensions

    def iter_paths(self, root: Path) -> Iterator[Path]:
        """Files under *root* in sorted order so scans are reproducible."""
        if root.is_file():
            yield root
            return
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not self._excluded_dir(d))
            for filename in sorted(filenames):
                path = Path(dirpath) / filename
                if self._wanted(path):
                    yield path

    def read_target(self, path: Path, *, base: Path | None = None) -> ScanTarget | None:
        try:
            size = path.stat().st_size
            if size > self._max_bytes:
                logger.warning("target_skipped path={} reason=too_large bytes={}", path, size)
                self.stats.skip("too_large")
                return None
            raw = path.read_bytes()
        except OSError as e:
            logger.warning("target_skipped path={} reason=unreadable error={}", path, e)
            self.stats.skip("unreadable")
            return None
        if b"\x00" in raw:
            logger.warning("target_skipped path={} reason=binary", path)
            self.stats.skip("binary")
            return None
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("target_skipped path={} reason=not_utf8", path)
            self.stats.skip("not_utf8")
            return None

        label = path
        if base is not None:
            try:
                label = path.resolve().relative_to(base.resolve())
            except ValueError:
                pass
        self.stats.read += 1
        return ScanTarget(path=label.as_posix(), content=content)

    def collect(self, roots: Iterable[Path], *, base: Path | None = None) -> list[ScanTarget]:
        """Read every wanted file under *roots*; paths are reported relative to *base*."""
        targets: list[ScanTarget] = []
        seen: set[Path] = set()
        for root in roots:
            if not root.exists():
                logger.warning("target_skipped path={} reason=missing", root)
                self.stats.skip("missing")
                continue
            for path in self.iter_paths(root):
                resolved = path.resolve()
                if resolved in seen:
                    continue
                seen.add(resolved)
                target = self.read_target(path, base=base)
                if target is not None:
                    targets.append(target)
        logger.debug("walk_complete read={} skipped={}", self.stats.read, self.stats.skipped)
        return targets


def walker_from_config(config) -> TargetWalker:
    """Build a walker from a :class:`~patternscan.config.schema.ScannerConfig`."""
    return TargetWalker(
        include_extensions=config.include_extensions,
        exclude_dirs=config.exclude_dirs,
        max_file_bytes=config.max_file_bytes,
    )
