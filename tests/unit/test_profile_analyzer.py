"""Tests for business profile analysis and validation."""

import pytest

from sitegen.services.generation.models import BusinessProfile
from sitegen.services.generation.profile_analyzer import (
    analyze_business_profile,
    infer_price_tier,
    validate_business_profile,
)


@pytest.mark.unit
class TestAnalyzeBusinessProfile:

    def test_address_only_profile_is_mid_tier(self):
        """No rating and no pricing gives the mid tier."""
        analysis = analyze_business_profile(BusinessProfile(address='1 Main St'))
        assert analysis.price_tier == 'mid'
        assert analysis.category == 'restaurant'
        assert analysis.style == 'modern'

    def test_vietnamese_profile(self, profile_data):
        analysis = analyze_business_profile(BusinessProfile.from_dict(profile_data))

        assert analysis.cuisine == 'vietnamese'
        assert analysis.price_tier == 'mid'
        assert analysis.keywords[0] == analysis.category
        assert 'cozy' in analysis.keywords
        assert 'warm' in analysis.keywords
        assert analysis.rating == 4.5
        assert analysis.review_count == 212

    def test_categories_take_precedence(self):
        profile = BusinessProfile(categories=('Sushi bar',), description='cozy restaurant')
        analysis = analyze_business_profile(profile)
        assert analysis.category == 'Sushi bar'
        assert analysis.cuisine == 'japanese'

    def test_category_from_description(self):
        analysis = analyze_business_profile(BusinessProfile(description='A tiny espresso cafe'))
        assert analysis.category == 'cafe'

    def test_street_noodle_stall_is_vibrant(self):
        analysis = analyze_business_profile(BusinessProfile(description='Street food noodle stall'))
        assert analysis.category == 'food truck'
        assert analysis.cuisine == 'chinese'
        assert analysis.style == 'vibrant'

    def test_barbecue_is_american(self):
        analysis = analyze_business_profile(BusinessProfile(description='Texas barbecue joint'))
        assert analysis.category == 'restaurant'
        assert analysis.cuisine == 'american'

    def test_keywords_are_unique_and_bounded(self):
        profile = BusinessProfile(
            description='cozy romantic elegant modern vibrant minimal rustic luxury dark bright fresh',
            tone='cozy warm refined casual',
        )
        analysis = analyze_business_profile(profile)
        assert len(analysis.keywords) <= 12
        assert len(set(analysis.keywords)) == len(analysis.keywords)

    def test_missing_profile_uses_defaults(self):
        analysis = analyze_business_profile(None)
        assert analysis.category == 'restaurant'
        assert analysis.price_tier == 'mid'


@pytest.mark.unit
@pytest.mark.parametrize('pricing, rating, expected', [
    ('$$$$', None, 'luxury'),
    ('$$$', None, 'upscale'),
    ('$$', 4.9, 'mid'),
    ('$', None, 'budget'),
    ('Premium tasting menu', None, 'luxury'),
    ('', 4.8, 'upscale'),
    ('', 4.2, 'mid'),
    ('', None, 'mid'),
])
def test_infer_price_tier(pricing, rating, expected):
    assert infer_price_tier(pricing, rating) == expected


@pytest.mark.unit
class TestValidateBusinessProfile:

    def test_missing_profile_is_invalid(self):
        result = validate_business_profile(None)
        assert not result.valid
        assert result.errors

    def test_profile_without_name_or_markdown_is_invalid(self):
        result = validate_business_profile(BusinessProfile(address='1 Main St'))
        assert not result.valid
        assert 'business name' in result.errors[0]

    def test_markdown_only_profile_is_valid(self):
        result = validate_business_profile(BusinessProfile(google_maps_markdown='# Pho Saigon'))
        assert result.valid
        assert all('address' not in w for w in result.warnings)

    def test_name_only_profile_is_valid_with_warnings(self):
        result = validate_business_profile(BusinessProfile(name='Pho Saigon'))
        assert result.valid
        assert 'Business address is missing' in result.warnings
        assert 'Business phone is missing' in result.warnings
        assert 'Business hours are missing' in result.warnings
