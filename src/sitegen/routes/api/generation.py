"""Website Generation API
======================

Endpoints:
POST /api/project/generate
{
  "projectId": "…",
  "model": "anthropic/claude-sonnet-4.5",   (optional)
  "provider": "OpenRouter"                  (optional)
}
  → text/event-stream of generation events (progress, template_selected,
    file, complete | error, heartbeat)

GET /api/project/<project_id>/snapshot
GET /api/project/generation-result/<session_id>
GET /api/templates
"""

import logging
from typing import Iterator, Optional

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from sitegen.constants import EventType, GenerationErrorCode
from sitegen.services.generation.config import GenerationOptions
from sitegen.services.generation.events import format_sse, with_heartbeat
from sitegen.services.generation.models import BusinessProfile
from sitegen.services.generation.orchestrator import GenerationOrchestrator, build_options
from sitegen.services.generation.pending_results import get_pending_result_store
from sitegen.services.generation.profile_analyzer import validate_business_profile
from sitegen.services.generation.template_loader import TemplateLoader
from sitegen.services.generation.theme_registry import get_theme_registry
from sitegen.services.project_service import get_project_service
from sitegen.services.service_base import NotFoundError
from sitegen.utils.async_utils import iterate_async
from sitegen.utils.errors import UnauthorizedError
from sitegen.utils.helpers import create_error_response, create_success_response

logger = logging.getLogger(__name__)

generation_bp = Blueprint('generation', __name__, url_prefix='/api')

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    'X-Accel-Buffering': 'no',
    'Connection': 'keep-alive',
}


def _require_user_id() -> str:
    user_id = request.headers.get('X-User-Id', '').strip()
    if not user_id:
        raise UnauthorizedError("Authentication required")
    return user_id


def _pending_store():
    return get_pending_result_store(
        max_entries=current_app.config.get('PENDING_RESULT_MAX_ENTRIES', 64),
        ttl_seconds=current_app.config.get('PENDING_RESULT_TTL', 300),
    )


def create_orchestrator(options: GenerationOptions) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        snapshot_store=get_project_service(),
        loader=TemplateLoader(github_token=options.github_token),
    )


def _event_stream(project_id: str, profile: BusinessProfile, options: GenerationOptions,
                  session_id: Optional[str], heartbeat_interval: float) -> Iterator[str]:
    orchestrator = create_orchestrator(options)
    events = with_heartbeat(orchestrator.stream(project_id, profile, options), heartbeat_interval)
    for event in iterate_async(events):
        if event.event == EventType.COMPLETE.value and session_id:
            _pending_store().put(session_id, event.data)
        yield format_sse(event)


@generation_bp.route('/project/generate', methods=['POST'])
def generate_project():
    """Stream the generation of a project's website as server-sent events."""
    data = request.get_json(silent=True) or {}
    project_id = data.get('projectId')
    if not project_id:
        return jsonify(create_error_response("projectId is required", 400)), 400

    user_id = _require_user_id()
    service = get_project_service()
    try:
        project = service.get_project(project_id, user_id)
    except NotFoundError:
        return jsonify(create_error_response(
            "Project not found", 404, error_type=GenerationErrorCode.PROJECT_NOT_FOUND.value,
        )), 404

    profile = service.get_business_profile(project)
    validation = validate_business_profile(profile)
    if not validation.valid:
        return jsonify(create_error_response(
            "Invalid business profile", 400,
            error_type=GenerationErrorCode.NO_BUSINESS_PROFILE.value,
            errors=list(validation.errors),
        )), 400

    options = build_options(data.get('model'), data.get('provider'), current_app.config, user_id=user_id)
    session_id = request.headers.get('X-Session-Id') or None
    logger.info(f"Generation requested for project {project_id} by {user_id} "
                f"(model={options.model}, provider={options.provider})")

    body = _event_stream(project_id, profile, options, session_id,
                         float(current_app.config.get('SSE_HEARTBEAT_INTERVAL', 5.0)))
    return Response(stream_with_context(body), mimetype='text/event-stream', headers=SSE_HEADERS)


@generation_bp.route('/project/<project_id>/snapshot', methods=['GET'])
def get_project_snapshot(project_id: str):
    user_id = _require_user_id()
    try:
        snapshot = get_project_service().get_snapshot(project_id, user_id)
    except NotFoundError as e:
        return jsonify(create_error_response(str(e), 404)), 404
    return jsonify(create_success_response(snapshot))


@generation_bp.route('/project/generation-result/<session_id>', methods=['GET'])
def get_generation_result(session_id: str):
    """Read-once fetch of the final result of a finished generation."""
    result = _pending_store().pop(session_id)
    if result is None:
        return jsonify(create_error_response("No pending result for this session", 404)), 404
    return jsonify(create_success_response(result))


@generation_bp.route('/templates', methods=['GET'])
def list_templates():
    return jsonify(create_success_response(get_theme_registry().list_themes()))
