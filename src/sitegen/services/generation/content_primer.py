"""Content Primer
==============

Builds the conversation handed to the main model. When template files are
available the conversation starts with an assistant turn that "imports" the
template as file-write blocks, followed by the user's customization request;
otherwise it is a single from-scratch request.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sitegen.services.generation.file_extractor import StreamingFileExtractor
from sitegen.services.generation.models import BusinessProfile, GeneratedFile
from sitegen.services.generation.prompt_loader import PromptLoader, get_prompt_loader
from sitegen.services.generation.template_loader import TemplateFile, TemplateFileSet
from sitegen.services.generation.theme_registry import ThemeDefinition

logger = logging.getLogger(__name__)

IMPORT_ARTIFACT_ID = 'imported-files'


@dataclass
class PrimedConversation:
    """Messages and system prompt for the main generation call.

    ``template_files`` holds the imported template files normalized the same
    way as model output; they are emitted to the client before any model
    file.
    """
    messages: List[Dict[str, str]]
    system_prompt: str
    template_files: List[GeneratedFile] = field(default_factory=list)
    from_scratch: bool = False


def with_routing_markers(text: str, model: str, provider: str) -> str:
    """Prefix a user message with the model/provider routing markers."""
    return f"[Model: {model}]\n\n[Provider: {provider}]\n\n{text}"


def build_file_action(template_file: TemplateFile) -> str:
    return f'<boltAction type="file" filePath="{template_file.path}">\n{template_file.content}\n</boltAction>'


def build_import_message(template_name: str, title: str, files: List[TemplateFile]) -> str:
    """Assistant turn that writes every template file into the project."""
    actions = '\n'.join(build_file_action(f) for f in files)
    return (
        f"Bolt is initializing your project with the required files using the {template_name} template.\n"
        f'<boltArtifact id="{IMPORT_ARTIFACT_ID}" title="{title}" type="bundled">\n'
        f"{actions}\n"
        f"</boltArtifact>"
    )


class ContentPrimer:
    """Assembles the priming conversation for a generation run."""

    def __init__(self, prompt_loader: Optional[PromptLoader] = None):
        self.prompts = prompt_loader or get_prompt_loader()

    def prime(self, profile: BusinessProfile, theme: Optional[ThemeDefinition],
              template: Optional[TemplateFileSet], model: str, provider: str,
              title: Optional[str] = None) -> PrimedConversation:
        theme_prompt = self.prompts.get_theme_prompt(theme) if theme is not None else ''
        system_prompt = self.prompts.get_system_prompt(theme_prompt, self.prompts.get_business_context(profile))

        if template is None or len(template) == 0:
            logger.info("No template files available, priming a from-scratch generation")
            user_text = self.prompts.get_from_scratch_prompt(profile)
            return PrimedConversation(
                messages=[{'role': 'user', 'content': with_routing_markers(user_text, model, provider)}],
                system_prompt=system_prompt,
                from_scratch=True,
            )

        template_name = template.template_name or (theme.name if theme else 'selected')
        import_message = build_import_message(template_name, title or template_name, template.all_files)

        # Re-parse so template files get the exact normalization model files get.
        extractor = StreamingFileExtractor()
        template_files = extractor.feed(import_message)
        extractor.finish()

        user_text = self.prompts.get_customization_prompt(
            profile,
            theme_prompt=theme_prompt,
            read_only_paths=template.read_only_paths,
            template_name=template_name,
        )
        logger.info(f"Primed {template_name} import with {len(template_files)} files "
                    f"({len(template.ignored)} read-only)")
        return PrimedConversation(
            messages=[
                {'role': 'assistant', 'content': import_message},
                {'role': 'user', 'content': with_routing_markers(user_text, model, provider)},
            ],
            system_prompt=system_prompt,
            template_files=template_files,
        )


__all__ = ['ContentPrimer', 'PrimedConversation', 'build_import_message', 'with_routing_markers']
