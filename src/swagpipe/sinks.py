"""Destinations for pipeline artifacts.

A sink is any callable taking an :class:`~swagpipe.models.Artifact`. The
pipeline never touches storage itself; it hands the finished artifact to the
sink it was given.

* :class:`FileSink` -- writes into an output directory, atomically.
* :class:`StdoutSink` -- writes the artifact bytes to stdout.
* :class:`MemorySink` -- keeps artifacts in memory, for library callers and
  tests.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, Union

from swagpipe.models import Artifact
from swagpipe.output import write_bytes

Sink = Callable[[Artifact], None]


def atomic_write(path: Path, data: bytes) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


class FileSink:
    """Write artifacts under *out_dir*, keeping their relative path.

    Absolute artifact paths are written as given.
    """

    def __init__(self, out_dir: Union[str, Path] = ".") -> None:
        self.out_dir = Path(out_dir)
        self.written: list[Path] = []

    def __call__(self, artifact: Artifact) -> None:
        target = self.out_dir / artifact.path
        atomic_write(target, artifact.content)
        self.written.append(target)


class StdoutSink:
    """Write artifact contents to stdout, one after the other."""

    def __call__(self, artifact: Artifact) -> None:
        write_bytes(artifact.content)


class MemorySink:
    """Collect artifacts in :attr:`artifacts`."""

    def __init__(self) -> None:
        self.artifacts: list[Artifact] = []

    def __call__(self, artifact: Artifact) -> None:
        self.artifacts.append(artifact)
