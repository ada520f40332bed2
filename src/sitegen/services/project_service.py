"""Project Service Layer
=====================

Database access for projects and their generated snapshots, keeping route
handlers and the generation pipeline free of SQLAlchemy details.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Project, ProjectSnapshot
from ..utils.time import utc_now, utc_now_iso
from .generation.models import BusinessProfile, GeneratedFile, SnapshotInfo
from .generation.snapshot import estimate_size_mb
from .service_base import NotFoundError, OperationError, ValidationError

logger = logging.getLogger(__name__)


class ProjectService:
    """Project lookup and snapshot persistence."""

    def get_project(self, project_id: str, user_id: Optional[str] = None) -> Project:
        project = db.session.get(Project, project_id)
        if project is None or (user_id is not None and project.user_id != user_id):
            raise NotFoundError("Project not found")
        return project

    def create_project(self, user_id: str, name: str,
                       business_profile: Optional[Dict[str, Any]] = None) -> Project:
        if not user_id or not name:
            raise ValidationError("user_id and name are required")
        project = Project(user_id=user_id, name=name)
        project.set_business_profile(business_profile)
        db.session.add(project)
        db.session.commit()
        return project

    def get_business_profile(self, project: Project) -> BusinessProfile:
        """The stored profile with the project name filled in.

        A project saved without crawl data gets a minimal profile built from
        its name.
        """
        data = project.get_business_profile()
        if data is None:
            data = {'crawled_data': {'name': project.name}}
        return BusinessProfile.from_dict(data).with_name(project.name)

    def get_snapshot(self, project_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        project = self.get_project(project_id, user_id)
        if project.snapshot is None:
            raise NotFoundError("Snapshot not found")
        return project.snapshot.to_dict()

    def save_snapshot(self, project_id: str, file_map: Dict[str, Any],
                      user_id: Optional[str] = None) -> SnapshotInfo:
        """Replace the project's snapshot with ``file_map``.

        Raises:
            NotFoundError: unknown project.
            OperationError: the database write failed (session rolled back).
        """
        project = self.get_project(project_id, user_id)
        try:
            snapshot = project.snapshot
            if snapshot is None:
                snapshot = ProjectSnapshot(project_id=project.id)
                db.session.add(snapshot)
            snapshot.set_files(file_map)
            snapshot.updated_at = utc_now()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to save snapshot for {project_id}: {e}")
            raise OperationError(f"Failed to save snapshot: {e}") from e

        written = [GeneratedFile(path, entry.get('content', ''))
                   for path, entry in file_map.items() if entry.get('type') == 'file']
        info = SnapshotInfo(
            saved_at=utc_now_iso(),
            file_count=snapshot.file_count,
            size_mb=estimate_size_mb(written),
        )
        logger.info(f"Saved snapshot for {project_id}: {info.file_count} files, {info.size_mb} MB")
        return info


_service: Optional[ProjectService] = None


def get_project_service() -> ProjectService:
    global _service
    if _service is None:
        _service = ProjectService()
    return _service


__all__ = ['ProjectService', 'get_project_service']
