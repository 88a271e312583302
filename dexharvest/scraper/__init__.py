"""PokeAPI harvesters, one per pipeline stage."""

from .base import BaseScraper, HarvestConfig, RateLimiter
from .base_index import BaseIndexScraper
from .moves import MoveScraper
from .pokemon import PokemonScraper
from .types import TypeScraper

__all__ = [
    "BaseScraper",
    "HarvestConfig",
    "RateLimiter",
    "BaseIndexScraper",
    "MoveScraper",
    "PokemonScraper",
    "TypeScraper",
]
