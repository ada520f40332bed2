"""Restaurant Theme Registry
==========================

The catalog of website templates the selector can choose from. Each entry
names a GitHub repository (and, when packaged, a local archive) holding
the template's source files.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

DEFAULT_THEME_ID = 'indochineluxe'


@dataclass(frozen=True)
class ThemeDefinition:
    id: str
    name: str
    description: str
    cuisines: Tuple[str, ...]
    style_tags: Tuple[str, ...]
    github_repo: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'cuisines': list(self.cuisines),
            'styleTags': list(self.style_tags),
            'githubRepo': self.github_repo,
        }


RESTAURANT_THEMES: Tuple[ThemeDefinition, ...] = (
    ThemeDefinition(
        id='artisanhearthv3',
        name='Artisan Hearth v3',
        description='Rustic farm-to-table with handcrafted aesthetics and warm, organic textures',
        cuisines=('farm-to-table', 'american', 'new-american', 'organic', 'sustainable'),
        style_tags=('rustic', 'warm', 'handcrafted', 'organic', 'farmhouse'),
        github_repo='neweb-learn/Artisanhearthv3',
    ),
    ThemeDefinition(
        id='bamboobistro',
        name='Bamboo Bistro',
        description='Modern Asian casual dining with night market vibes and zen aesthetics',
        cuisines=('asian', 'chinese', 'ramen', 'thai', 'japanese', 'izakaya', 'dim-sum'),
        style_tags=('casual', 'energetic', 'night-market', 'modern', 'zen'),
        github_repo='neweb-learn/Bamboobistro',
    ),
    ThemeDefinition(
        id='boldfeastv2',
        name='Bold Feast v2',
        description='Contemporary American bistro with bold flavors and industrial-chic design',
        cuisines=('american', 'contemporary', 'bistro', 'gastropub', 'craft-cocktails'),
        style_tags=('bold', 'industrial', 'contemporary', 'urban', 'gastropub'),
        github_repo='neweb-learn/Boldfeastv2',
    ),
    ThemeDefinition(
        id='chromaticstreet',
        name='Chromatic Street',
        description='Vibrant street food culture with neon accents and urban photography',
        cuisines=('street-food', 'fusion', 'food-truck', 'international', 'casual'),
        style_tags=('vibrant', 'neon', 'urban', 'street-art', 'photography-focused'),
        github_repo='neweb-learn/Chromaticstreet',
    ),
    ThemeDefinition(
        id='classicminimalistv2',
        name='Classic Minimalist v2',
        description='Elegant fine dining with minimalist design and refined Scandinavian aesthetics',
        cuisines=('fine-dining', 'european', 'scandinavian', 'contemporary', 'tasting-menu'),
        style_tags=('minimalist', 'elegant', 'scandinavian', 'refined', 'clean'),
        github_repo='neweb-learn/Classicminimalistv2',
    ),
    ThemeDefinition(
        id='dynamicfusion',
        name='Dynamic Fusion',
        description='High-energy fusion cuisine with dramatic plating and modern molecular techniques',
        cuisines=('fusion', 'molecular-gastronomy', 'contemporary', 'asian-fusion', 'latin-fusion'),
        style_tags=('dynamic', 'dramatic', 'modern', 'molecular', 'experimental'),
        github_repo='neweb-learn/Dynamicfusion',
    ),
    ThemeDefinition(
        id='freshmarket',
        name='Fresh Market',
        description='Bright and airy farmers market concept with fresh produce photography',
        cuisines=('mediterranean', 'healthy', 'vegetarian', 'farmers-market', 'light'),
        style_tags=('bright', 'airy', 'fresh', 'natural-lighting', 'produce-focused'),
        github_repo='neweb-learn/Freshmarket',
    ),
    ThemeDefinition(
        id='gastrobotanical',
        name='Gastrobotanical',
        description='Botanical garden restaurant with herb gardens and scientific illustration style',
        cuisines=('botanical', 'herbal', 'garden-to-table', 'seasonal', 'foraged'),
        style_tags=('botanical', 'scientific', 'garden', 'herbal', 'illustrated'),
        github_repo='neweb-learn/Gastrobotanical',
    ),
    ThemeDefinition(
        id='indochineluxe',
        name='Indochine Luxe',
        description='Luxurious Southeast Asian dining with colonial architecture and silk textiles',
        cuisines=('vietnamese', 'french-indochine', 'luxury', 'fine-dining', 'colonial'),
        style_tags=('luxurious', 'colonial', 'silk', 'architectural', 'elegant'),
        github_repo='neweb-learn/Indochineluxe',
    ),
    ThemeDefinition(
        id='noirluxev3',
        name='Noir Luxe v3',
        description='Sophisticated dark-themed fine dining with gold accents and dramatic lighting',
        cuisines=('fine-dining', 'contemporary', 'french', 'luxury', 'wine-focused'),
        style_tags=('dark', 'luxurious', 'gold-accents', 'dramatic', 'sophisticated'),
        github_repo='neweb-learn/Noirluxev3',
    ),
    ThemeDefinition(
        id='saigonveranda',
        name='Saigon Veranda',
        description='Vietnamese street food meets French café culture with veranda seating',
        cuisines=('vietnamese', 'french-cafe', 'street-food', 'pho', 'banh-mi'),
        style_tags=('veranda', 'french-colonial', 'casual', 'outdoor-seating', 'vintage'),
        github_repo='neweb-learn/SaiGonveranda',
    ),
    ThemeDefinition(
        id='therednoodle',
        name='The Red Noodle',
        description='Traditional Asian noodle house with red lanterns and communal dining',
        cuisines=('noodles', 'ramen', 'asian', 'communal', 'comfort-food'),
        style_tags=('red-lanterns', 'communal', 'traditional', 'warm', 'nostalgic'),
        github_repo='neweb-learn/Therednoodle',
    ),
)


class ThemeRegistry:
    """Lookup over an ordered, name-unique set of themes."""

    def __init__(self, themes: Sequence[ThemeDefinition] = RESTAURANT_THEMES,
                 default_theme_id: str = DEFAULT_THEME_ID):
        names = [t.name for t in themes]
        if len(set(names)) != len(names):
            raise ValueError("Theme names must be unique")
        self._themes: Tuple[ThemeDefinition, ...] = tuple(themes)
        self._by_id = {t.id: t for t in self._themes}
        self._by_name = {t.name: t for t in self._themes}
        if default_theme_id not in self._by_id:
            raise ValueError(f"Default theme '{default_theme_id}' is not registered")
        self.default_theme_id = default_theme_id

    def __iter__(self) -> Iterator[ThemeDefinition]:
        return iter(self._themes)

    def __len__(self) -> int:
        return len(self._themes)

    @property
    def default(self) -> ThemeDefinition:
        return self._by_id[self.default_theme_id]

    def get_by_id(self, theme_id: str) -> Optional[ThemeDefinition]:
        return self._by_id.get(theme_id)

    def get_by_name(self, name: str) -> Optional[ThemeDefinition]:
        """Exact name match, then a case-insensitive one."""
        theme = self._by_name.get(name)
        if theme is None and name:
            lowered = name.strip().lower()
            theme = next((t for t in self._themes if t.name.lower() == lowered), None)
        return theme

    def list_themes(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self._themes]


_registry: Optional[ThemeRegistry] = None


def get_theme_registry() -> ThemeRegistry:
    """Get the shared registry of built-in themes."""
    global _registry
    if _registry is None:
        _registry = ThemeRegistry()
    return _registry
