"""Generation Data Types
======================

Value objects passed between the pipeline stages: the business profile
input, the analysis and template selection derived from it, generated
files, phase outcomes and the events streamed to the client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from sitegen.constants import TERMINAL_EVENTS, EventType, GenerationPhase, PhaseStatus

T = TypeVar('T')


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _menu_item_line(item: Any) -> str:
    if isinstance(item, Mapping):
        name = _text(item.get('name'))
        price = _text(item.get('price'))
        if name and price:
            return f"{name} (${price.lstrip('$')})"
        return name
    return _text(item)


@dataclass(frozen=True)
class BusinessProfile:
    """Everything known about the business a site is generated for.

    Built with :meth:`from_dict` from either a flat mapping or the crawler's
    nested shape (``crawled_data`` / ``generated_content``). The original
    mapping is kept in ``raw`` so it can be embedded in prompts verbatim.
    """
    name: str = ''
    description: str = ''
    address: str = ''
    phone: str = ''
    website: str = ''
    rating: Optional[float] = None
    review_count: Optional[int] = None
    hours: Mapping[str, str] = field(default_factory=dict)
    menu_categories: Tuple[str, ...] = ()
    menu: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    social_links: Mapping[str, str] = field(default_factory=dict)
    categories: Tuple[str, ...] = ()
    pricing: str = ''
    tone: str = ''
    visual_style: str = ''
    usp: str = ''
    target_audience: str = ''
    tagline: str = ''
    reviews: Tuple[str, ...] = ()
    color_palette: Mapping[str, Any] = field(default_factory=dict)
    typography: Mapping[str, Any] = field(default_factory=dict)
    content_sections: Mapping[str, Any] = field(default_factory=dict)
    google_maps_markdown: str = ''
    website_markdown: str = ''
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BusinessProfile':
        data = _mapping(data)
        crawled = _mapping(data.get('crawled_data'))
        generated = _mapping(data.get('generated_content'))
        identity = _mapping(generated.get('businessIdentity'))
        industry = _mapping(generated.get('industryContext'))
        reputation = _mapping(generated.get('reputationData'))
        brand = _mapping(generated.get('brandStrategy'))
        visual = _mapping(generated.get('visualAssets'))

        def pick(*values: Any) -> str:
            for value in values:
                text = _text(value)
                if text:
                    return text
            return ''

        menu_sections: Dict[str, Tuple[str, ...]] = {}
        for section in _mapping(crawled.get('menu')).get('categories') or []:
            if isinstance(section, Mapping) and _text(section.get('name')):
                menu_sections[_text(section.get('name'))] = tuple(
                    _menu_item_line(item) for item in section.get('items') or [] if _menu_item_line(item)
                )
        for section_name, items in _mapping(data.get('menu')).items():
            menu_sections[_text(section_name)] = tuple(
                _menu_item_line(item) for item in items or [] if _menu_item_line(item)
            )
        menu = data.get('menu_categories')
        if menu is None:
            menu = list(menu_sections)
        reviews = data.get('reviews')
        if reviews is None:
            reviews = crawled.get('reviews') or []
        review_texts = tuple(
            _text(r.get('text') if isinstance(r, Mapping) else r) for r in reviews
        )

        rating = _number(data.get('rating'))
        if rating is None:
            rating = _number(reputation.get('averageRating'))
        if rating is None:
            rating = _number(crawled.get('rating'))
        review_count = _number(data.get('review_count'))
        if review_count is None:
            review_count = _number(reputation.get('reviewsCount'))
        if review_count is None:
            review_count = _number(crawled.get('reviews_count'))

        return cls(
            name=pick(data.get('name'), identity.get('displayName'), crawled.get('name')),
            description=pick(data.get('description'), identity.get('description')),
            address=pick(data.get('address'), crawled.get('address')),
            phone=pick(data.get('phone'), crawled.get('phone')),
            website=pick(data.get('website'), crawled.get('website')),
            rating=rating,
            review_count=int(review_count) if review_count is not None else None,
            hours=MappingProxyType({str(k): _text(v) for k, v in
                                    _mapping(data.get('hours') or crawled.get('hours')).items()}),
            menu_categories=tuple(t for t in (_text(m) for m in menu or []) if t),
            menu=MappingProxyType(menu_sections),
            social_links=MappingProxyType({str(k): _text(v) for k, v in
                                           _mapping(data.get('social_links')).items()}),
            categories=tuple(t for t in (_text(c) for c in
                                         data.get('categories') or industry.get('categories') or []) if t),
            pricing=pick(data.get('pricing'), industry.get('pricingTier')),
            tone=pick(data.get('tone'), brand.get('toneOfVoice')),
            visual_style=pick(data.get('visual_style'), brand.get('visualStyle')),
            usp=pick(data.get('usp'), brand.get('usp')),
            target_audience=pick(data.get('target_audience'), brand.get('targetAudience')),
            tagline=pick(data.get('tagline'), identity.get('tagline')),
            reviews=tuple(t for t in review_texts if t),
            color_palette=MappingProxyType(_mapping(data.get('color_palette') or visual.get('colorPalette'))),
            typography=MappingProxyType(_mapping(data.get('typography') or visual.get('typography'))),
            content_sections=MappingProxyType(_mapping(data.get('content_sections')
                                                       or generated.get('contentSections'))),
            google_maps_markdown=_text(data.get('google_maps_markdown')),
            website_markdown=_text(data.get('website_markdown')),
            raw=MappingProxyType(dict(data)),
        )

    def with_name(self, name: str) -> 'BusinessProfile':
        """Copy of this profile with ``name`` filled in when it is missing."""
        if self.name or not _text(name):
            return self
        return replace(self, name=_text(name))

    def to_json(self) -> str:
        """The original profile mapping as pretty JSON for prompt injection."""
        return json.dumps(dict(self.raw), indent=2, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ProfileAnalysis:
    category: str
    cuisine: str
    price_tier: str
    style: str
    keywords: Tuple[str, ...]
    rating: Optional[float] = None
    review_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'cuisine': self.cuisine,
            'priceTier': self.price_tier,
            'style': self.style,
            'keywords': list(self.keywords),
            'rating': self.rating,
            'reviewsCount': self.review_count,
        }


@dataclass(frozen=True)
class ProfileValidation:
    valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TemplateSelection:
    theme_id: str
    name: str
    title: str
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'themeId': self.theme_id,
            'name': self.name,
            'title': self.title,
            'reasoning': self.reasoning,
        }


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str

    @property
    def size(self) -> int:
        return len(self.content.encode('utf-8'))

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'content': self.content, 'size': self.size}


@dataclass(frozen=True)
class PhaseOutcome(Generic[T]):
    """Result of a pipeline phase that may substitute a fallback value.

    ``reason`` is ``None`` for a genuine result and explains the
    substitution otherwise.
    """
    value: T
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> 'PhaseOutcome[T]':
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> 'PhaseOutcome[T]':
        return cls(value=value, reason=reason or 'unspecified')

    @property
    def is_fallback(self) -> bool:
        return self.reason is not None


@dataclass(frozen=True)
class SnapshotInfo:
    saved_at: str
    file_count: int
    size_mb: float

    def to_dict(self) -> Dict[str, Any]:
        return {'savedAt': self.saved_at, 'fileCount': self.file_count, 'sizeMB': self.size_mb}


@dataclass(frozen=True)
class GenerationEvent:
    """One named event of the generation stream with its JSON payload."""
    event: str
    data: Dict[str, Any]

    @property
    def is_terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS

    def to_dict(self) -> Dict[str, Any]:
        return {'event': self.event, 'data': self.data}

    @classmethod
    def progress(cls, phase: GenerationPhase, status: PhaseStatus, message: str, percentage: int,
                 template_name: Optional[str] = None, started_at: Optional[str] = None) -> 'GenerationEvent':
        data: Dict[str, Any] = {
            'phase': str(phase),
            'status': str(status),
            'message': message,
            'percentage': percentage,
        }
        if template_name:
            data['templateName'] = template_name
        if started_at:
            data['startedAt'] = started_at
        return cls(EventType.PROGRESS.value, data)

    @classmethod
    def template_selected(cls, selection: TemplateSelection) -> 'GenerationEvent':
        return cls(EventType.TEMPLATE_SELECTED.value, selection.to_dict())

    @classmethod
    def file(cls, generated: GeneratedFile) -> 'GenerationEvent':
        return cls(EventType.FILE.value, generated.to_dict())

    @classmethod
    def complete(cls, project_id: str, selection: TemplateSelection, files: List[GeneratedFile],
                 snapshot: Optional[SnapshotInfo], timing: Dict[str, int],
                 error: Optional[str] = None) -> 'GenerationEvent':
        data: Dict[str, Any] = {
            'success': True,
            'projectId': project_id,
            'template': selection.to_dict(),
            'files': [f.to_dict() for f in files],
            'snapshot': snapshot.to_dict() if snapshot else None,
            'timing': dict(timing),
        }
        if error:
            data['error'] = error
        return cls(EventType.COMPLETE.value, data)

    @classmethod
    def error(cls, message: str, code: str, retryable: bool = False) -> 'GenerationEvent':
        return cls(EventType.ERROR.value, {'message': message, 'code': str(code), 'retryable': retryable})

    @classmethod
    def heartbeat(cls, timestamp: int) -> 'GenerationEvent':
        return cls(EventType.HEARTBEAT.value, {'timestamp': timestamp})
