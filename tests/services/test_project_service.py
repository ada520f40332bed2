"""Tests for project lookup and snapshot persistence."""

import pytest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from sitegen.services.project_service import ProjectService, get_project_service
from sitegen.services.service_base import NotFoundError, OperationError, ValidationError


@pytest.fixture
def service(app):
    return ProjectService()


@pytest.fixture
def project(service, profile_data):
    return service.create_project('user-1', 'Pho Saigon House', profile_data)


FILE_MAP = {
    '/home': {'type': 'folder'},
    '/home/project': {'type': 'folder'},
    '/home/project/index.html': {'type': 'file', 'content': '<html></html>\n', 'isBinary': False},
    '/home/project/README.md': {'type': 'file', 'content': '# Pho', 'isBinary': False},
}


@pytest.mark.unit
class TestProjectLookup:

    def test_get_project(self, service, project):
        assert service.get_project(project.id).name == 'Pho Saigon House'
        assert service.get_project(project.id, 'user-1').id == project.id

    def test_other_users_project_is_not_found(self, service, project):
        with pytest.raises(NotFoundError):
            service.get_project(project.id, 'user-2')

    def test_unknown_project(self, service):
        with pytest.raises(NotFoundError):
            service.get_project('missing')

    def test_create_requires_user_and_name(self, service):
        with pytest.raises(ValidationError):
            service.create_project('', 'Name')

    def test_business_profile_gets_project_name(self, service):
        project = service.create_project('user-1', 'Lotus Garden', {'address': '8 Harbour Road'})
        profile = service.get_business_profile(project)
        assert profile.name == 'Lotus Garden'
        assert profile.address == '8 Harbour Road'

    def test_missing_business_profile_uses_project_name(self, service):
        project = service.create_project('user-1', 'Lotus Garden')
        profile = service.get_business_profile(project)

        assert profile.name == 'Lotus Garden'
        assert dict(profile.raw) == {'crawled_data': {'name': 'Lotus Garden'}}
        assert profile.google_maps_markdown == ''


@pytest.mark.unit
class TestSnapshots:

    def test_save_and_read_snapshot(self, service, project):
        info = service.save_snapshot(project.id, FILE_MAP, user_id='user-1')

        assert info.file_count == 2
        assert info.size_mb == 0.0
        snapshot = service.get_snapshot(project.id, 'user-1')
        assert snapshot['projectId'] == project.id
        assert snapshot['files'] == FILE_MAP
        assert snapshot['fileCount'] == 2

    def test_save_reports_size(self, service, project):
        file_map = dict(FILE_MAP)
        file_map['/home/project/public/data.json'] = {
            'type': 'file', 'content': 'x' * (2 * 1024 * 1024), 'isBinary': False,
        }
        info = service.save_snapshot(project.id, file_map)

        assert info.file_count == 3
        assert info.size_mb == 2.0

    def test_save_replaces_previous_snapshot(self, service, project):
        service.save_snapshot(project.id, FILE_MAP)
        replacement = {'/home/project/a.ts': {'type': 'file', 'content': 'a\n', 'isBinary': False}}
        service.save_snapshot(project.id, replacement)

        assert service.get_snapshot(project.id)['files'] == replacement

    def test_snapshot_not_found(self, service, project):
        with pytest.raises(NotFoundError, match='Snapshot not found'):
            service.get_snapshot(project.id)

    def test_save_for_unknown_project(self, service):
        with pytest.raises(NotFoundError):
            service.save_snapshot('missing', FILE_MAP)

    def test_database_failure_is_operation_error(self, service, project, db_session):
        error = OperationalError('INSERT', {}, Exception('database is locked'))
        with patch.object(db_session, 'commit', side_effect=error):
            with pytest.raises(OperationError, match='Failed to save snapshot'):
                service.save_snapshot(project.id, FILE_MAP)


@pytest.mark.unit
def test_get_project_service_is_shared():
    assert get_project_service() is get_project_service()
