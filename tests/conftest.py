import sys
from pathlib import Path

# Ensure the application package under src/ is importable when running tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / 'src'
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import io
import os
import zipfile

import pytest

from sitegen.extensions import db as _db
from sitegen.services.generation import api_client, template_loader
from sitegen.factory import create_app
from sitegen.services.generation.pending_results import reset_pending_result_store
from sitegen.utils.circuit_breaker import CircuitBreaker


@pytest.fixture
def app():
    """Create application for the tests (fresh in-memory database)."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """The database session bound to the test app."""
    yield _db.session
    _db.session.rollback()


def _clear_shared_state():
    CircuitBreaker._states.clear()
    api_client._openrouter_breaker = None
    template_loader._github_breaker = None
    reset_pending_result_store()


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Circuit breakers and the pending store are process-wide."""
    _clear_shared_state()
    yield
    _clear_shared_state()


@pytest.fixture
def profile_data():
    """A typical crawled restaurant profile (flat shape)."""
    return {
        'name': 'Pho Saigon House',
        'description': 'Family-run Vietnamese kitchen serving slow-simmered pho and banh mi.',
        'address': '12 Market Street, Springfield',
        'phone': '+1 555 0100',
        'website': 'https://phosaigon.example',
        'rating': 4.5,
        'review_count': 212,
        'pricing': '$$',
        'hours': {'Monday': '11:00 - 21:00', 'Tuesday': '11:00 - 21:00'},
        'menu': {
            'Pho': [{'name': 'Pho Bo', 'price': '14'}, {'name': 'Pho Ga', 'price': '13'}],
            'Banh Mi': ['Grilled Pork Banh Mi'],
        },
        'tone': 'warm and welcoming',
        'reviews': ['Cozy spot with the best broth in town.'],
    }


def build_zip(files, root=None):
    """Zip ``{path: content}`` in memory, optionally under a root folder."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        if root:
            archive.writestr(f'{root}/', '')
        for path, content in files.items():
            name = f'{root}/{path}' if root else path
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    return build_zip
