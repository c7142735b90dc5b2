"""CleaningOptions -- the flat set of boolean toggles for one pipeline run.

Attribute names are snake_case; the wire format uses the camelCase names
the front end has always sent (``stripComments``, ``minifyInlineCSSJS``,
...).  Instances are frozen: the orchestrator derives an *effective* copy
via ``with_enabled()`` instead of mutating the caller's options.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class CleaningOptions(BaseModel):
    """Feature flags accepted by ``pipeline.orchestrator.run``."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    strip_comments: bool = Field(True, alias="stripComments")
    collapse_whitespace: bool = Field(True, alias="collapseWhitespace")
    minify_inline_css_js: bool = Field(True, alias="minifyInlineCSSJS")
    remove_empty_attributes: bool = Field(True, alias="removeEmptyAttributes")
    preserve_iframes: bool = Field(True, alias="preserveIframes")
    preserve_links: bool = Field(True, alias="preserveLinks")
    preserve_shortcodes: bool = Field(True, alias="preserveShortcodes")
    lazy_load_embeds: bool = Field(True, alias="lazyLoadEmbeds")
    lazy_load_images: bool = Field(True, alias="lazyLoadImages")
    lazy_load_background_images: bool = Field(True, alias="lazyLoadBackgroundImages")
    optimize_images: bool = Field(True, alias="optimizeImages")
    convert_to_avif: bool = Field(False, alias="convertToAvif")
    add_responsive_srcset: bool = Field(True, alias="addResponsiveSrcset")
    optimize_svgs: bool = Field(True, alias="optimizeSvgs")
    defer_scripts: bool = Field(True, alias="deferScripts")
    optimize_font_loading: bool = Field(True, alias="optimizeFontLoading")
    add_prefetch_hints: bool = Field(True, alias="addPrefetchHints")
    optimize_css_loading: bool = Field(False, alias="optimizeCssLoading")
    semantic_rewrite: bool = Field(False, alias="semanticRewrite")

    @classmethod
    def all_disabled(cls) -> CleaningOptions:
        """Return options with every flag off (useful as a base for tests and callers)."""
        return cls(**{name: False for name in cls.model_fields})

    def with_enabled(self, keys: Iterable[str]) -> CleaningOptions:
        """Return a copy with the given flags (attribute or wire names) switched on.

        Unknown keys are ignored.  Flags are only ever turned on, never off.
        """
        update: dict[str, bool] = {}
        for key in keys:
            name = resolve_option_key(key)
            if name is not None:
                update[name] = True
        if not update:
            return self
        return self.model_copy(update=update)


# Wire alias -> attribute name, plus attribute names mapping to themselves.
_KEY_LOOKUP: dict[str, str] = {}
for _name, _field in CleaningOptions.model_fields.items():
    _KEY_LOOKUP[_name] = _name
    if _field.alias:
        _KEY_LOOKUP[_field.alias] = _name
        _KEY_LOOKUP[_field.alias.lower()] = _name

OPTION_KEYS: tuple[str, ...] = tuple(
    field.alias or name for name, field in CleaningOptions.model_fields.items()
)


def resolve_option_key(key: str) -> str | None:
    """Map a wire alias or attribute name to the attribute name, or None."""
    if not key:
        return None
    return _KEY_LOOKUP.get(key) or _KEY_LOOKUP.get(key.strip().lower())
