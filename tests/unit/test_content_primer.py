"""Tests for priming the main generation conversation."""

import pytest

from sitegen.services.generation.content_primer import ContentPrimer, build_import_message, with_routing_markers
from sitegen.services.generation.models import BusinessProfile
from sitegen.services.generation.prompt_loader import PromptLoader
from sitegen.services.generation.template_loader import TemplateFile, apply_ignore_patterns
from sitegen.services.generation.theme_registry import get_theme_registry


@pytest.fixture
def primer():
    return ContentPrimer(prompt_loader=PromptLoader())


@pytest.fixture
def theme():
    return get_theme_registry().get_by_id('bamboobistro')


@pytest.fixture
def template():
    files = [
        TemplateFile('src/App.tsx', 'export default function App() {\n  return <Hero />;\n}\n'),
        TemplateFile('src/data/content.ts', 'export const siteContent = { name: "Placeholder" };'),
        TemplateFile('vite.config.ts', 'export default {}'),
        TemplateFile('README.md', '# Bamboo Bistro\n'),
    ]
    return apply_ignore_patterns(files, 'Bamboo Bistro')


@pytest.mark.unit
class TestContentPrimer:

    def test_template_conversation(self, primer, theme, template, profile_data):
        profile = BusinessProfile.from_dict(profile_data)
        primed = primer.prime(profile, theme, template, 'anthropic/claude-sonnet-4.5', 'OpenRouter',
                              title='Pho Saigon House')

        assert not primed.from_scratch
        assert [m['role'] for m in primed.messages] == ['assistant', 'user']

        assistant = primed.messages[0]['content']
        assert assistant.startswith(
            'Bolt is initializing your project with the required files using the Bamboo Bistro template.'
        )
        assert '<boltArtifact id="imported-files" title="Pho Saigon House" type="bundled">' in assistant
        assert assistant.count('<boltAction type="file"') == 4

        user = primed.messages[1]['content']
        assert user.startswith('[Model: anthropic/claude-sonnet-4.5]\n\n[Provider: OpenRouter]\n\n')
        assert 'Pho Saigon House' in user
        assert '- vite.config.ts' in user
        assert '- README.md' in user
        assert 'Pho Bo ($14)' in user
        assert 'CUSTOMIZATION TASK' in user

    def test_template_files_are_normalized(self, primer, theme, template):
        primed = primer.prime(BusinessProfile(name='Pho Saigon'), theme, template, 'm', 'p')

        paths = [f.path for f in primed.template_files]
        assert paths == [
            '/home/project/src/App.tsx',
            '/home/project/src/data/content.ts',
            '/home/project/vite.config.ts',
            '/home/project/README.md',
        ]
        by_path = {f.path: f.content for f in primed.template_files}
        assert by_path['/home/project/src/data/content.ts'].endswith('};\n')
        assert by_path['/home/project/README.md'] == '# Bamboo Bistro'

    def test_from_scratch_without_template(self, primer, theme):
        primed = primer.prime(BusinessProfile(name='Pho Saigon'), theme, None, 'gpt-4o', 'OpenAI')

        assert primed.from_scratch
        assert primed.template_files == []
        assert len(primed.messages) == 1
        message = primed.messages[0]
        assert message['role'] == 'user'
        assert message['content'].startswith('[Model: gpt-4o]\n\n[Provider: OpenAI]\n\n')
        assert '"Pho Saigon"' in message['content']

    def test_system_prompt_structured_flow(self, primer, theme, profile_data):
        primed = primer.prime(BusinessProfile.from_dict(profile_data), theme, None, 'm', 'p')

        assert 'Bamboo Bistro' in primed.system_prompt
        assert '<full_business_profile_json>' in primed.system_prompt
        assert '"name": "Pho Saigon House"' in primed.system_prompt
        assert '/home/project' in primed.system_prompt

    def test_system_prompt_markdown_flow(self, primer, theme):
        profile = BusinessProfile(name='Pho Saigon', google_maps_markdown='## Pho Saigon\n4.6 stars')
        primed = primer.prime(profile, theme, None, 'm', 'p')

        assert '<google_maps_data>' in primed.system_prompt
        assert '4.6 stars' in primed.system_prompt
        assert '<existing_website_analysis>' not in primed.system_prompt


@pytest.mark.unit
def test_import_message_wire_format():
    message = build_import_message('Noir Luxe v3', 'Noir', [TemplateFile('index.html', '<html></html>')])
    assert message == (
        'Bolt is initializing your project with the required files using the Noir Luxe v3 template.\n'
        '<boltArtifact id="imported-files" title="Noir" type="bundled">\n'
        '<boltAction type="file" filePath="index.html">\n<html></html>\n</boltAction>\n'
        '</boltArtifact>'
    )


@pytest.mark.unit
def test_with_routing_markers():
    assert with_routing_markers('hi', 'm', 'p') == '[Model: m]\n\n[Provider: p]\n\nhi'
