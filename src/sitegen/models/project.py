from __future__ import annotations

import json
import uuid
from typing import Any, Dict, Optional

from ..extensions import db
from ..utils.time import utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


class Project(db.Model):
    """A website project and the business profile it is generated from."""
    __tablename__ = 'projects'
    __table_args__ = {'extend_existing': True}

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(100), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    business_profile_json = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    snapshot = db.relationship('ProjectSnapshot', back_populates='project', uselist=False,
                               cascade='all, delete-orphan')

    def get_business_profile(self) -> Optional[Dict[str, Any]]:
        if self.business_profile_json:
            try:
                data = json.loads(self.business_profile_json)
            except json.JSONDecodeError:
                return None
            return data if isinstance(data, dict) else None
        return None

    def set_business_profile(self, profile: Optional[Dict[str, Any]]) -> None:
        self.business_profile_json = json.dumps(profile) if profile is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'userId': self.user_id,
            'hasBusinessProfile': self.business_profile_json is not None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f'<Project {self.id} {self.name!r}>'


class ProjectSnapshot(db.Model):
    """Latest file map saved for a project (one row per project)."""
    __tablename__ = 'project_snapshots'
    __table_args__ = {'extend_existing': True}

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(36), db.ForeignKey('projects.id'), unique=True, nullable=False, index=True)
    files_json = db.Column(db.Text, nullable=False, default='{}')
    file_count = db.Column(db.Integer, default=0)

    created_at = db.Column(db.DateTime(timezone=True), default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    project = db.relationship('Project', back_populates='snapshot')

    def get_files(self) -> Dict[str, Any]:
        try:
            return json.loads(self.files_json or '{}')
        except json.JSONDecodeError:
            return {}

    def set_files(self, file_map: Dict[str, Any]) -> None:
        self.files_json = json.dumps(file_map)
        self.file_count = sum(1 for entry in file_map.values() if entry.get('type') == 'file')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'projectId': self.project_id,
            'files': self.get_files(),
            'fileCount': self.file_count,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
