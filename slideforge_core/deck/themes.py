"""
Theme Registry - named color/gradient role sets.

Pure lookup, defined at import time, never mutated. Unknown identifiers
resolve to a style-derived legacy theme when the style names one, else to
the default ``ai-modern`` theme.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from slideforge_core.deck.models import Theme

DEFAULT_THEME_KEY = "ai-modern"


def _theme(key, name, primary, secondary, accent, background, text, light_bg, gradient, accent_gradient):
    return Theme(
        key=key,
        name=name,
        primary=primary,
        secondary=secondary,
        accent=accent,
        background=background,
        text=text,
        light_bg=light_bg,
        gradient=tuple(gradient),
        accent_gradient=tuple(accent_gradient),
    )


_THEMES = (
    # AI themes
    _theme("ai-modern", "AI Modern", "6366F1", "8B5CF6", "EC4899", "F8FAFC", "1E293B", "FFFFFF",
           ("6366F1", "8B5CF6"), ("EC4899", "F59E0B")),
    _theme("ai-corporate", "AI Corporate", "1E293B", "334155", "3B82F6", "F8FAFC", "0F172A", "FFFFFF",
           ("1E293B", "334155"), ("3B82F6", "1D4ED8")),
    _theme("ai-creative", "AI Creative", "8B5CF6", "EC4899", "F59E0B", "FDF2F8", "1E293B", "FFFFFF",
           ("8B5CF6", "EC4899"), ("F59E0B", "F97316")),
    _theme("ai-minimal", "AI Minimal", "6B7280", "9CA3AF", "D1D5DB", "FFFFFF", "374151", "F9FAFB",
           ("6B7280", "9CA3AF"), ("D1D5DB", "E5E7EB")),
    _theme("ai-tech", "AI Tech", "059669", "10B981", "34D399", "F0FDF4", "064E3B", "FFFFFF",
           ("059669", "10B981"), ("34D399", "6EE7B7")),
    _theme("ai-data", "AI Data", "DC2626", "EF4444", "F87171", "FEF2F2", "7F1D1D", "FFFFFF",
           ("DC2626", "EF4444"), ("F87171", "FCA5A5")),
    # Legacy themes (pre-AI form values)
    _theme("modern", "Modern", "1E40AF", "7C3AED", "F59E0B", "F8FAFC", "1E293B", "FFFFFF",
           ("1E40AF", "7C3AED"), ("F59E0B", "F97316")),
    _theme("corporate", "Corporate", "0F172A", "334155", "3B82F6", "F8FAFC", "0F172A", "FFFFFF",
           ("0F172A", "334155"), ("3B82F6", "1D4ED8")),
    _theme("creative", "Creative", "7C3AED", "EC4899", "F59E0B", "FDF2F8", "1E293B", "FFFFFF",
           ("7C3AED", "EC4899"), ("F59E0B", "F97316")),
    _theme("minimal", "Minimal", "6B7280", "9CA3AF", "D1D5DB", "FFFFFF", "374151", "F9FAFB",
           ("6B7280", "9CA3AF"), ("D1D5DB", "E5E7EB")),
)

THEMES: Mapping[str, Theme] = MappingProxyType({t.key: t for t in _THEMES})

LEGACY_KEYS = ("modern", "corporate", "creative", "minimal")

# Style keyword -> legacy theme, checked in order
_STYLE_THEMES = (
    ("creative", "creative"),
    ("corporate", "corporate"),
    ("minimal", "minimal"),
)


def resolve_theme(theme_id: Optional[str], style: Optional[str] = None) -> Theme:
    """
    Look up a theme. Never fails.

    Args:
        theme_id: Registry key (e.g. "ai-tech"); case-insensitive
        style: Free-text style from the form, used when theme_id is unknown

    Returns:
        The matching theme, a style-derived legacy theme, or the default theme
    """
    key = (theme_id or "").strip().lower()
    if key in THEMES:
        return THEMES[key]

    if style:
        lowered = style.lower()
        for keyword, legacy_key in _STYLE_THEMES:
            if keyword in lowered:
                return THEMES[legacy_key]

    return THEMES[DEFAULT_THEME_KEY]


def list_themes(include_legacy: bool = False) -> List[Dict[str, Any]]:
    """Theme summaries for the UI picker."""
    return [
        {**t.to_dict(), "legacy": t.key in LEGACY_KEYS}
        for t in _THEMES
        if include_legacy or t.key not in LEGACY_KEYS
    ]
