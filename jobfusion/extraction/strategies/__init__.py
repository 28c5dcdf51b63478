"""Extraction strategy plugins and their registry."""

import logging
from typing import Optional

from .aria_labels import AriaLabelsStrategy
from .base import BaseExtractionStrategy, StrategyResult
from .css_selectors import CssSelectorsStrategy
from .json_ld import JsonLdStrategy
from .meta_tags import MetaTagsStrategy
from .title_parse import TitleParseStrategy

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Registry of extraction strategies, ordered by priority."""

    def __init__(self, register_defaults: bool = True):
        self._strategies: dict[str, BaseExtractionStrategy] = {}
        if register_defaults:
            self._register_defaults()

    def _register_defaults(self):
        """Register built-in strategies."""
        self.register(JsonLdStrategy())
        self.register(AriaLabelsStrategy())
        self.register(MetaTagsStrategy())
        self.register(CssSelectorsStrategy())
        self.register(TitleParseStrategy())

    def register(self, strategy: BaseExtractionStrategy):
        """Register a strategy; a later one with the same name replaces the earlier."""
        if strategy.name in self._strategies:
            logger.debug(f"Replacing registered strategy: {strategy.name}")
        self._strategies[strategy.name] = strategy

    def unregister(self, name: str):
        self._strategies.pop(name, None)

    def get(self, name: str) -> Optional[BaseExtractionStrategy]:
        return self._strategies.get(name)

    def all(self) -> list[BaseExtractionStrategy]:
        """Strategies sorted by priority (stable for equal priorities)."""
        return sorted(self._strategies.values(), key=lambda s: getattr(s, "priority", 100))

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, name: str) -> bool:
        return name in self._strategies


def default_strategies() -> list[BaseExtractionStrategy]:
    return StrategyRegistry().all()


__all__ = [
    "AriaLabelsStrategy",
    "BaseExtractionStrategy",
    "CssSelectorsStrategy",
    "JsonLdStrategy",
    "MetaTagsStrategy",
    "StrategyRegistry",
    "StrategyResult",
    "TitleParseStrategy",
    "default_strategies",
]
