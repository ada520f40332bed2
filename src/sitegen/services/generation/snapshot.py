"""Snapshot Assembly
=================

Builds the project file map persisted after a generation run: one folder
entry for every parent directory and one file entry per generated path.
When a path is written more than once the last write wins and the
collision is recorded.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from sitegen.constants import FileSource
from sitegen.services.generation.models import GeneratedFile

logger = logging.getLogger(__name__)

FileMap = Dict[str, Dict[str, Any]]


@dataclass(frozen=True)
class FileVersion:
    source: str
    index: int
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {'source': self.source, 'index': self.index, 'size': self.size}


@dataclass(frozen=True)
class DuplicateResolution:
    """Every version written to one path, and the one that was kept."""
    path: str
    versions: Tuple[FileVersion, ...]
    winner: FileVersion

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'versions': [v.to_dict() for v in self.versions],
            'winner': self.winner.to_dict(),
        }


@dataclass
class AssembledSnapshot:
    file_map: FileMap
    resolutions: List[DuplicateResolution] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return sum(1 for entry in self.file_map.values() if entry.get('type') == 'file')


def parent_folders(path: str) -> List[str]:
    """``/home/project/src/App.tsx`` -> ``['/home', '/home/project', '/home/project/src']``."""
    parts = [p for p in path.split('/') if p]
    prefix = '/' if path.startswith('/') else ''
    return [prefix + '/'.join(parts[:i]) for i in range(1, len(parts))]


def estimate_size_mb(files: Sequence[GeneratedFile]) -> float:
    total_bytes = sum(f.size for f in files)
    return round(total_bytes / (1024 * 1024), 2)


class SnapshotAssembler:
    """Turns the ordered generated files of a run into a file map."""

    def assemble(self, files: Sequence[GeneratedFile], template_count: int = 0) -> AssembledSnapshot:
        """Build the file map.

        Args:
            files: All files of the run in emission order.
            template_count: How many leading entries of ``files`` came from
                the template rather than the model.
        """
        file_map: FileMap = {}
        versions: Dict[str, List[FileVersion]] = {}

        for index, generated in enumerate(files):
            for folder in parent_folders(generated.path):
                if folder not in file_map:
                    file_map[folder] = {'type': 'folder'}
            file_map[generated.path] = {
                'type': 'file',
                'content': generated.content,
                'isBinary': False,
            }
            source = FileSource.TEMPLATE.value if index < template_count else FileSource.MODEL.value
            versions.setdefault(generated.path, []).append(FileVersion(source, index, generated.size))

        resolutions: List[DuplicateResolution] = []
        for path, path_versions in versions.items():
            if len(path_versions) < 2:
                continue
            resolution = DuplicateResolution(path=path, versions=tuple(path_versions), winner=path_versions[-1])
            resolutions.append(resolution)
            summary = ', '.join(f"{v.source}#{v.index} ({v.size}B)" for v in path_versions)
            logger.warning(f"Duplicate writes to {path}: {summary}; keeping {resolution.winner.source}"
                           f"#{resolution.winner.index}")

        return AssembledSnapshot(file_map=file_map, resolutions=resolutions)


__all__ = [
    'AssembledSnapshot',
    'DuplicateResolution',
    'FileMap',
    'FileVersion',
    'SnapshotAssembler',
    'estimate_size_mb',
    'parent_folders',
]
