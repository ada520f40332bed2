"""Business Profile Analyzer
==========================

Pure, deterministic signal extraction from a :class:`BusinessProfile`:
category, cuisine, price tier, style label and a short keyword list. The
result feeds the template selection prompt. Nothing here raises; missing
data degrades to safe defaults.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from sitegen.constants import PriceTier
from sitegen.services.generation.models import BusinessProfile, ProfileAnalysis, ProfileValidation

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'restaurant'
DEFAULT_STYLE = 'modern'
MAX_KEYWORDS = 12
MAX_REVIEWS_SCANNED = 10

# Ordered: the first entry whose keyword matches wins.
CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('food truck', ('food truck', 'street food', 'hawker')),
    ('cafe', ('cafe', 'café', 'coffee', 'espresso', 'tea house')),
    ('bakery', ('bakery', 'patisserie', 'pastry', 'boulangerie')),
    ('bar', ('cocktail', 'wine bar', 'pub', 'brewery', 'taproom')),
    ('fine dining', ('fine dining', 'tasting menu', 'michelin')),
    ('restaurant', ('restaurant', 'bistro', 'eatery', 'kitchen', 'diner')),
)

CUISINE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('vietnamese', ('vietnamese', 'pho', 'banh mi', 'bun cha', 'saigon', 'hanoi')),
    ('thai', ('thai', 'pad thai', 'tom yum')),
    ('japanese', ('japanese', 'sushi', 'ramen', 'izakaya', 'omakase')),
    ('korean', ('korean', 'bibimbap', 'kimchi', 'korean bbq')),
    ('chinese', ('chinese', 'dim sum', 'szechuan', 'sichuan', 'cantonese', 'noodle')),
    ('indian', ('indian', 'curry', 'tandoori', 'biryani')),
    ('italian', ('italian', 'pizza', 'pasta', 'trattoria', 'osteria')),
    ('french', ('french', 'brasserie', 'bistro', 'patisserie')),
    ('mexican', ('mexican', 'taco', 'taqueria', 'burrito')),
    ('mediterranean', ('mediterranean', 'greek', 'mezze', 'lebanese', 'turkish')),
    ('seafood', ('seafood', 'oyster', 'fish')),
    ('plant-based', ('vegan', 'vegetarian', 'plant-based')),
    ('american', ('american', 'burger', 'bbq', 'barbecue', 'steakhouse', 'grill')),
)

# Explicit pricing text → tier, checked in order (longest signal first).
PRICE_SIGNALS: Tuple[Tuple[PriceTier, Tuple[str, ...]], ...] = (
    (PriceTier.LUXURY, ('$$$$', 'lux', 'premium')),
    (PriceTier.UPSCALE, ('$$$', 'fine', 'upscale')),
    (PriceTier.MID, ('$$', 'mid')),
    (PriceTier.BUDGET, ('$', 'budget', 'cheap')),
)

STYLE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('vibrant', ('street', 'food truck', 'noodle')),
    ('elegant', ('fine dining', 'lux', 'tasting')),
    ('fresh', ('botanical', 'garden', 'fresh')),
    ('rustic', ('rustic', 'farm', 'hearth')),
    ('dark-luxe', ('dark', 'noir', 'gold')),
    ('minimalist', ('minimal', 'clean', 'scandinavian')),
)

KEYWORD_VOCABULARY: Tuple[str, ...] = (
    'cozy', 'romantic', 'elegant', 'modern', 'vibrant', 'minimal', 'rustic', 'luxury',
    'dark', 'bright', 'fresh', 'botanical', 'industrial', 'casual', 'refined', 'warm',
)


def _contains(text: str, keyword: str) -> bool:
    """Word-start match so 'bar' does not hit 'barbecue' but 'minimal' hits 'minimalist'."""
    if not keyword[0].isalnum():
        return keyword in text
    return re.search(r'(?<![a-z0-9])' + re.escape(keyword), text) is not None


def _first_table_match(candidates: Iterable[str],
                       table: Sequence[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    for candidate in candidates:
        text = candidate.lower()
        for label, keywords in table:
            if any(_contains(text, kw) for kw in keywords):
                return label
    return None


def infer_category(profile: BusinessProfile) -> str:
    if profile.categories:
        return profile.categories[0]
    return _first_table_match([profile.description], CATEGORY_KEYWORDS) or DEFAULT_CATEGORY


def infer_cuisine(profile: BusinessProfile, category: str) -> str:
    candidates = [c.lower() for c in profile.categories] + [m.lower() for m in profile.menu_categories]
    matched = _first_table_match(candidates + [profile.description], CUISINE_KEYWORDS)
    if matched:
        return matched
    return candidates[0] if candidates else category


def infer_price_tier(pricing: str, rating: Optional[float]) -> str:
    """Explicit pricing wins; a rating alone only ever yields upscale or mid."""
    text = (pricing or '').strip().lower()
    if text:
        for tier, signals in PRICE_SIGNALS:
            if any(signal in text for signal in signals):
                return tier.value
    if rating is not None and rating >= 4.7:
        return PriceTier.UPSCALE.value
    return PriceTier.MID.value


def infer_style(haystack: str) -> str:
    for style, needles in STYLE_RULES:
        if any(needle in haystack for needle in needles):
            return style
    return DEFAULT_STYLE


def _vocabulary_matches(text: str) -> List[str]:
    return [word for word in KEYWORD_VOCABULARY if _contains(text, word)]


def analyze_business_profile(profile: Optional[BusinessProfile]) -> ProfileAnalysis:
    """Derive selection signals from a business profile."""
    profile = profile or BusinessProfile()

    category = infer_category(profile)
    cuisine = infer_cuisine(profile, category)
    price_tier = infer_price_tier(profile.pricing, profile.rating)

    review_text = ' '.join(profile.reviews[:MAX_REVIEWS_SCANNED]).lower()
    haystack = ' '.join([
        category, cuisine, profile.pricing, profile.tone, profile.visual_style, review_text,
    ]).lower()
    style = infer_style(haystack)

    brand_text = f"{profile.tone} {profile.visual_style}".lower()
    candidates = [category, cuisine, price_tier, style]
    candidates += _vocabulary_matches(f"{profile.description.lower()} {review_text}")
    candidates += _vocabulary_matches(brand_text)

    keywords: List[str] = []
    for candidate in candidates:
        keyword = candidate.strip().lower()
        if keyword and keyword not in keywords:
            keywords.append(keyword)

    return ProfileAnalysis(
        category=category,
        cuisine=cuisine,
        price_tier=price_tier,
        style=style,
        keywords=tuple(keywords[:MAX_KEYWORDS]),
        rating=profile.rating,
        review_count=profile.review_count,
    )


def validate_business_profile(profile: Optional[BusinessProfile]) -> ProfileValidation:
    """Check that a profile carries enough data to generate a site."""
    if profile is None:
        return ProfileValidation(valid=False, errors=('Business profile is required',))

    errors: List[str] = []
    warnings: List[str] = []

    if not profile.name and not profile.google_maps_markdown:
        errors.append('Business data is required (business name or google_maps_markdown)')

    if not profile.website_markdown and not profile.website:
        warnings.append('No website analysis available - generation will rely on Google Maps data only')
    if not profile.google_maps_markdown:
        if not profile.address:
            warnings.append('Business address is missing')
        if not profile.phone:
            warnings.append('Business phone is missing')
        if not profile.hours:
            warnings.append('Business hours are missing')

    for warning in warnings:
        logger.debug(f"Profile warning: {warning}")

    return ProfileValidation(valid=not errors, errors=tuple(errors), warnings=tuple(warnings))
