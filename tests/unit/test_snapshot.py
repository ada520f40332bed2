"""Tests for snapshot assembly."""

import logging

import pytest

from sitegen.services.generation.models import GeneratedFile
from sitegen.services.generation.snapshot import SnapshotAssembler, estimate_size_mb, parent_folders


@pytest.mark.unit
class TestSnapshotAssembler:

    def test_folders_are_created_for_every_parent(self):
        assembled = SnapshotAssembler().assemble([
            GeneratedFile('/home/project/src/components/Hero.tsx', 'hero\n'),
        ])

        assert assembled.file_map['/home'] == {'type': 'folder'}
        assert assembled.file_map['/home/project'] == {'type': 'folder'}
        assert assembled.file_map['/home/project/src'] == {'type': 'folder'}
        assert assembled.file_map['/home/project/src/components'] == {'type': 'folder'}
        assert assembled.file_map['/home/project/src/components/Hero.tsx'] == {
            'type': 'file', 'content': 'hero\n', 'isBinary': False,
        }
        assert assembled.file_count == 1

    def test_duplicate_path_last_write_wins(self, caplog):
        """v1 then v2 for the same path keeps v2 and records it."""
        files = [
            GeneratedFile('/home/project/src/App.tsx', 'v1'),
            GeneratedFile('/home/project/src/App.tsx', 'v2'),
        ]
        with caplog.at_level(logging.WARNING):
            assembled = SnapshotAssembler().assemble(files)

        assert assembled.file_map['/home/project/src/App.tsx']['content'] == 'v2'
        assert assembled.file_count == 1
        assert len(assembled.resolutions) == 1
        resolution = assembled.resolutions[0]
        assert resolution.path == '/home/project/src/App.tsx'
        assert [v.index for v in resolution.versions] == [0, 1]
        assert resolution.winner.index == 1
        assert 'Duplicate writes to /home/project/src/App.tsx' in caplog.text

    def test_model_file_overrides_template_file(self):
        files = [
            GeneratedFile('/home/project/src/data/content.ts', 'template'),
            GeneratedFile('/home/project/index.html', '<html></html>\n'),
            GeneratedFile('/home/project/src/data/content.ts', 'model'),
        ]
        assembled = SnapshotAssembler().assemble(files, template_count=2)

        resolution = assembled.resolutions[0]
        assert [v.source for v in resolution.versions] == ['template', 'model']
        assert resolution.winner.source == 'model'
        assert assembled.file_map['/home/project/src/data/content.ts']['content'] == 'model'

    def test_no_resolutions_without_duplicates(self):
        assembled = SnapshotAssembler().assemble([
            GeneratedFile('/home/project/a.ts', 'a\n'),
            GeneratedFile('/home/project/b.ts', 'b\n'),
        ])
        assert assembled.resolutions == []
        assert assembled.file_count == 2

    def test_empty_run(self):
        assembled = SnapshotAssembler().assemble([])
        assert assembled.file_map == {}
        assert assembled.file_count == 0


@pytest.mark.unit
def test_parent_folders():
    assert parent_folders('/home/project/src/App.tsx') == ['/home', '/home/project', '/home/project/src']
    assert parent_folders('/index.html') == []


@pytest.mark.unit
def test_estimate_size_mb_rounds_to_two_decimals():
    files = [GeneratedFile('/home/project/big.txt', 'x' * (1024 * 1024)),
             GeneratedFile('/home/project/small.txt', 'y' * (300 * 1024))]
    assert estimate_size_mb(files) == 1.29
    assert estimate_size_mb([]) == 0.0
