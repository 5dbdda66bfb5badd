"""Stage result files for the workflow's upload-artifact step."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable, List


class ArtifactError(RuntimeError):
    """Raised when result files cannot be staged."""


class ArtifactStager:
    """Copy result files into ``<root>/<artifact name>/``."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        *,
        working_dir: str | os.PathLike[str] = ".",
    ) -> None:
        self.root = Path(root)
        self.working_dir = Path(working_dir)

    def stage(self, artifact_name: str, files: Iterable[str | os.PathLike[str]]) -> Path:
        """Copy ``files`` into the artifact directory and return that directory."""

        name = artifact_name.strip()
        if not name or Path(name).name != name:
            raise ArtifactError(f"Invalid artifact name: {artifact_name!r}")

        sources: List[Path] = []
        for file_name in files:
            source = Path(file_name)
            if not source.is_absolute():
                source = self.working_dir / source
            if not source.is_file():
                raise ArtifactError(f"Result file not found: {file_name}")
            sources.append(source)

        destination = self.root / name
        destination.mkdir(parents=True, exist_ok=True)
        for source in sources:
            try:
                relative = source.resolve().relative_to(self.working_dir.resolve())
            except ValueError:
                relative = Path(source.name)
            target = destination / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                shutil.copy2(source, target)
            except OSError as exc:
                raise ArtifactError(f"Failed to copy {source} into {destination}") from exc

        return destination
