"""Tests for generation value objects."""

import json

import pytest

from sitegen.constants import GenerationPhase, PhaseStatus
from sitegen.services.generation.models import (
    BusinessProfile,
    GeneratedFile,
    GenerationEvent,
    PhaseOutcome,
    SnapshotInfo,
    TemplateSelection,
)


NESTED_PROFILE = {
    'crawled_data': {
        'name': 'Crawled Name',
        'address': '8 Harbour Road',
        'phone': '+44 20 0000',
        'rating': '4.7',
        'reviews_count': 98,
        'hours': {'Friday': '17:00 - 23:00'},
        'menu': {'categories': [
            {'name': 'Starters', 'items': [{'name': 'Spring Rolls', 'price': '$6'}, {'name': 'Edamame'}]},
            {'name': '', 'items': ['ignored']},
        ]},
        'reviews': [{'text': 'Lovely terrace.'}, {'text': ''}],
    },
    'generated_content': {
        'businessIdentity': {'displayName': 'Lotus Garden', 'tagline': 'Since 1998'},
        'industryContext': {'categories': ['Thai restaurant'], 'pricingTier': '$$$'},
        'brandStrategy': {'toneOfVoice': 'refined', 'usp': 'Riverside terrace'},
        'visualAssets': {'colorPalette': {'primary': '#0f3d3e'}},
    },
}


@pytest.mark.unit
class TestBusinessProfile:

    def test_flat_profile(self, profile_data):
        profile = BusinessProfile.from_dict(profile_data)

        assert profile.name == 'Pho Saigon House'
        assert profile.rating == 4.5
        assert profile.review_count == 212
        assert profile.menu_categories == ('Pho', 'Banh Mi')
        assert profile.menu['Pho'] == ('Pho Bo ($14)', 'Pho Ga ($13)')
        assert profile.menu['Banh Mi'] == ('Grilled Pork Banh Mi',)
        assert profile.reviews == ('Cozy spot with the best broth in town.',)

    def test_nested_crawler_shape(self):
        profile = BusinessProfile.from_dict(NESTED_PROFILE)

        assert profile.name == 'Lotus Garden'
        assert profile.tagline == 'Since 1998'
        assert profile.address == '8 Harbour Road'
        assert profile.rating == 4.7
        assert profile.review_count == 98
        assert profile.hours == {'Friday': '17:00 - 23:00'}
        assert profile.menu == {'Starters': ('Spring Rolls ($6)', 'Edamame')}
        assert profile.categories == ('Thai restaurant',)
        assert profile.pricing == '$$$'
        assert profile.tone == 'refined'
        assert profile.usp == 'Riverside terrace'
        assert profile.color_palette == {'primary': '#0f3d3e'}
        assert profile.reviews == ('Lovely terrace.',)

    def test_bad_values_are_ignored(self):
        profile = BusinessProfile.from_dict({'name': '  ', 'rating': 'n/a', 'review_count': True, 'hours': []})
        assert profile.name == ''
        assert profile.rating is None
        assert profile.review_count is None
        assert profile.hours == {}

    def test_none_is_empty_profile(self):
        assert BusinessProfile.from_dict(None) == BusinessProfile()

    def test_with_name_only_fills_missing(self):
        assert BusinessProfile().with_name('Pho Saigon').name == 'Pho Saigon'
        assert BusinessProfile(name='Kept').with_name('Other').name == 'Kept'
        assert BusinessProfile().with_name('  ').name == ''

    def test_to_json_is_original_mapping(self, profile_data):
        profile = BusinessProfile.from_dict(profile_data)
        assert json.loads(profile.to_json()) == profile_data


@pytest.mark.unit
class TestGenerationEvent:

    def test_progress_payload(self):
        event = GenerationEvent.progress(GenerationPhase.TEMPLATE_SELECTION, PhaseStatus.IN_PROGRESS,
                                         'Analyzing business details', 10)
        assert event.event == 'progress'
        assert event.data == {
            'phase': 'template_selection',
            'status': 'in_progress',
            'message': 'Analyzing business details',
            'percentage': 10,
        }
        assert not event.is_terminal

    def test_progress_optional_fields(self):
        event = GenerationEvent.progress(GenerationPhase.CONTENT_GENERATION, PhaseStatus.IN_PROGRESS,
                                         'Generating layout & copy', 30, template_name='Noir Luxe v3',
                                         started_at='2026-01-01T00:00:00+00:00')
        assert event.data['templateName'] == 'Noir Luxe v3'
        assert event.data['startedAt'] == '2026-01-01T00:00:00+00:00'

    def test_file_size_is_utf8_bytes(self):
        generated = GeneratedFile('/home/project/menu.md', 'Phở')
        assert generated.size == len('Phở'.encode('utf-8'))
        assert GenerationEvent.file(generated).data['size'] == generated.size

    def test_complete_payload(self):
        selection = TemplateSelection('noirluxev3', 'Noir Luxe v3', 'Noir', 'Dark fine dining')
        event = GenerationEvent.complete(
            'p1', selection, [GeneratedFile('/home/project/a.ts', 'a\n')],
            SnapshotInfo('2026-01-01T00:00:00+00:00', 1, 0.0), {'totalMs': 5},
        )
        assert event.is_terminal
        assert event.data['success'] is True
        assert event.data['template']['themeId'] == 'noirluxev3'
        assert event.data['snapshot']['fileCount'] == 1
        assert 'error' not in event.data

    def test_error_payload(self):
        event = GenerationEvent.error('Generation failed: boom', 'INTERNAL_ERROR', retryable=True)
        assert event.is_terminal
        assert event.to_dict() == {
            'event': 'error',
            'data': {'message': 'Generation failed: boom', 'code': 'INTERNAL_ERROR', 'retryable': True},
        }


@pytest.mark.unit
def test_phase_outcome():
    assert not PhaseOutcome.ok(1).is_fallback
    fallback = PhaseOutcome.fallback(None, '')
    assert fallback.is_fallback
    assert fallback.reason == 'unspecified'
