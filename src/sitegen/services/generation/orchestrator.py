"""Generation Orchestrator
=======================

Runs one website generation and reports it as an ordered event stream:
select template → load and prime → stream model files → save snapshot.

Template selection and loading degrade to fallbacks instead of failing.
Errors while the model is streaming end the run without a terminal event;
:meth:`GenerationOrchestrator.stream` turns them into a single ``error``
event for the transport.
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from sitegen.constants import GenerationErrorCode, GenerationPhase, PhaseStatus
from sitegen.services.generation.api_client import OpenRouterClient, get_api_client
from sitegen.services.generation.config import GenerationOptions
from sitegen.services.generation.content_primer import ContentPrimer
from sitegen.services.generation.file_extractor import StreamingFileExtractor
from sitegen.services.generation.models import (
    BusinessProfile,
    GeneratedFile,
    GenerationEvent,
    SnapshotInfo,
)
from sitegen.services.generation.snapshot import FileMap, SnapshotAssembler, estimate_size_mb
from sitegen.services.generation.template_loader import TemplateLoader
from sitegen.services.generation.template_selector import TemplateSelector
from sitegen.services.generation.theme_registry import ThemeRegistry, get_theme_registry
from sitegen.utils.time import utc_now_iso

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    def save_snapshot(self, project_id: str, file_map: FileMap,
                      user_id: Optional[str] = None) -> SnapshotInfo:
        ...


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class GenerationOrchestrator:
    """Drives the generation pipeline for one project at a time.

    Every collaborator can be injected; the defaults talk to OpenRouter,
    GitHub and the project database.
    """

    def __init__(self, snapshot_store: Optional[SnapshotStore] = None,
                 selector: Optional[TemplateSelector] = None,
                 loader: Optional[TemplateLoader] = None,
                 primer: Optional[ContentPrimer] = None,
                 client: Optional[OpenRouterClient] = None,
                 registry: Optional[ThemeRegistry] = None,
                 assembler: Optional[SnapshotAssembler] = None):
        if snapshot_store is None:
            from sitegen.services.project_service import ProjectService
            snapshot_store = ProjectService()
        self.snapshot_store = snapshot_store
        self.client = client or get_api_client()
        self.registry = registry or get_theme_registry()
        self.selector = selector or TemplateSelector(client=self.client, registry=self.registry)
        self.loader = loader or TemplateLoader()
        self.primer = primer or ContentPrimer()
        self.assembler = assembler or SnapshotAssembler()

    async def run(self, project_id: str, profile: BusinessProfile,
                  options: GenerationOptions) -> AsyncIterator[GenerationEvent]:
        """Generate a site, yielding progress, file and completion events."""
        run_start = time.perf_counter()
        logger.info(f"Starting generation for project {project_id} with {options.model}")

        # Step 1: template selection
        phase_start = time.perf_counter()
        yield GenerationEvent.progress(
            GenerationPhase.TEMPLATE_SELECTION, PhaseStatus.IN_PROGRESS,
            'Analyzing business details', 10, started_at=utc_now_iso(),
        )
        selected = await self.selector.select(profile, options.resolved_fast_model)
        selection = selected.value
        if selected.is_fallback:
            logger.warning(f"Using fallback template for {project_id}: {selected.reason}")
        theme = self.registry.get_by_id(selection.theme_id) or self.registry.default
        phase1_ms = _elapsed_ms(phase_start)

        yield GenerationEvent.progress(
            GenerationPhase.TEMPLATE_SELECTION, PhaseStatus.COMPLETED,
            f'Template selected: {selection.name}', 20, template_name=selection.name,
        )
        yield GenerationEvent.template_selected(selection)

        # Step 2: template priming and content generation
        phase_start = time.perf_counter()
        yield GenerationEvent.progress(
            GenerationPhase.CONTENT_GENERATION, PhaseStatus.IN_PROGRESS,
            'Generating layout & copy', 30, template_name=selection.name, started_at=utc_now_iso(),
        )
        loaded = await self.loader.load(theme)
        if loaded.is_fallback:
            logger.warning(f"Template files unavailable for {theme.name}, generating from scratch: "
                           f"{loaded.reason}")
        primed = self.primer.prime(profile, theme, loaded.value, options.model, options.provider,
                                   title=selection.title)

        files: List[GeneratedFile] = []
        for template_file in primed.template_files:
            files.append(template_file)
            yield GenerationEvent.file(template_file)
        template_count = len(files)

        extractor = StreamingFileExtractor()
        model_stream = self.client.stream_chat_completion(
            model=options.model,
            messages=primed.messages,
            system_prompt=primed.system_prompt,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            timeout=options.timeout,
        )
        try:
            async for chunk in model_stream:
                for generated in extractor.feed(chunk):
                    files.append(generated)
                    yield GenerationEvent.file(generated)
        finally:
            aclose = getattr(model_stream, 'aclose', None)
            if aclose is not None:
                await aclose()
        extractor.finish()
        phase2_ms = _elapsed_ms(phase_start)
        logger.info(f"Model produced {len(files) - template_count} files "
                    f"({template_count} from template) in {phase2_ms / 1000:.1f}s")

        yield GenerationEvent.progress(
            GenerationPhase.CONTENT_GENERATION, PhaseStatus.COMPLETED,
            'Final polish & SEO check', 80, template_name=selection.name,
        )

        # Step 3: snapshot
        phase_start = time.perf_counter()
        yield GenerationEvent.progress(
            GenerationPhase.SNAPSHOT_SAVE, PhaseStatus.IN_PROGRESS, 'Saving project', 90,
        )
        assembled = self.assembler.assemble(files, template_count=template_count)
        snapshot: Optional[SnapshotInfo] = None
        save_error: Optional[str] = None
        try:
            saved = self.snapshot_store.save_snapshot(project_id, assembled.file_map, user_id=options.user_id)
            snapshot = SnapshotInfo(
                saved_at=saved.saved_at,
                file_count=len(files),
                size_mb=estimate_size_mb(files),
            )
        except Exception as e:
            logger.error(f"❌ Snapshot save failed for {project_id}: {e}")
            save_error = f"Snapshot save failed: {e}"

        if save_error:
            yield GenerationEvent.progress(
                GenerationPhase.SNAPSHOT_SAVE, PhaseStatus.ERROR, 'Snapshot save failed', 100,
            )
        else:
            yield GenerationEvent.progress(
                GenerationPhase.SNAPSHOT_SAVE, PhaseStatus.COMPLETED, 'Project saved', 100,
            )
        phase3_ms = _elapsed_ms(phase_start)

        timing: Dict[str, int] = {
            'phase1Ms': phase1_ms,
            'phase2Ms': phase2_ms,
            'phase3Ms': phase3_ms,
            'totalMs': _elapsed_ms(run_start),
        }
        logger.info(f"✅ Generation for {project_id} finished in {timing['totalMs'] / 1000:.1f}s "
                    f"({len(files)} files)")
        yield GenerationEvent.complete(project_id, selection, files, snapshot, timing, error=save_error)

    async def stream(self, project_id: str, profile: BusinessProfile,
                     options: GenerationOptions) -> AsyncIterator[GenerationEvent]:
        """:meth:`run` for the transport: failures become one ``error`` event."""
        events = self.run(project_id, profile, options)
        terminal_sent = False
        try:
            async for event in events:
                terminal_sent = terminal_sent or event.is_terminal
                yield event
        except Exception as e:
            logger.exception(f"Generation for project {project_id} failed")
            if not terminal_sent:
                yield GenerationEvent.error(
                    f'Generation failed: {e}', GenerationErrorCode.INTERNAL_ERROR, retryable=True,
                )
        finally:
            await events.aclose()


def build_options(model: Optional[str], provider: Optional[str], settings: Dict[str, Any],
                  user_id: Optional[str] = None) -> GenerationOptions:
    """Per-run options from request values falling back to app settings."""
    return GenerationOptions(
        model=model or settings.get('DEFAULT_MODEL') or 'anthropic/claude-sonnet-4.5',
        provider=provider or settings.get('DEFAULT_PROVIDER') or 'OpenRouter',
        max_tokens=int(settings.get('GENERATION_MAX_TOKENS') or 32000),
        timeout=int(settings.get('GENERATION_TIMEOUT') or 600),
        github_token=settings.get('GITHUB_TOKEN') or None,
        user_id=user_id,
    )


__all__ = ['GenerationOrchestrator', 'SnapshotStore', 'build_options']
