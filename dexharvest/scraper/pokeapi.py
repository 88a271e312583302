"""
PokeAPI access layer shared by the four harvesters.

Resolves ``{base}/{resource}/{name}`` endpoints and parses every body into
the typed shapes from :mod:`dexharvest.models`.  Error policy is left to
the harvesters: every method here raises on failure.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, TypeVar

from dexharvest.configs.constants import Constants
from dexharvest.errors import PayloadError
from dexharvest.models import RawMove, RawPokemon, RawSpecies, RawType, ResourceList
from dexharvest.scraper.base import BaseScraper

RESOURCES = Constants.POKEAPI_RESOURCES

P = TypeVar("P")


class PokeAPIScraper(BaseScraper):
    """
    BaseScraper with PokeAPI endpoint helpers.

    Still abstract: concrete harvesters implement ``harvest`` and
    ``output_path``.
    """

    # ------------------------------------------------------------------
    # Endpoint resolution — supports relative paths AND full URLs
    # ------------------------------------------------------------------

    def url_for(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return f"{self.config.base_url}/{endpoint.lstrip('/')}"

    def resource_url(self, resource: str, name: str) -> str:
        return self.url_for(f"{RESOURCES[resource]}/{name}")

    def list_url(self, resource: str) -> str:
        return self.url_for(f"{RESOURCES[resource]}?limit={self.config.list_limit}")

    @staticmethod
    def _parse(parser: Callable[[Mapping[str, Any]], P], data: Any, url: str) -> P:
        """Run *parser* on *data*, tagging any PayloadError with *url*."""
        if not isinstance(data, Mapping):
            raise PayloadError("Expected a JSON object", url)
        try:
            return parser(data)
        except PayloadError as exc:
            raise PayloadError(str(exc), url) from exc

    # ------------------------------------------------------------------
    # Typed fetch wrappers
    # ------------------------------------------------------------------

    def fetch_resource_list(self, resource: str) -> ResourceList:
        url = self.list_url(resource)
        return self._parse(ResourceList.from_json, self.get_json(url), url)

    def fetch_species(self, endpoint: str) -> RawSpecies:
        url = self.url_for(endpoint)
        return self._parse(RawSpecies.from_json, self.get_json(url), url)

    def fetch_move(self, name_or_url: str) -> RawMove:
        url = (
            name_or_url
            if name_or_url.startswith("http")
            else self.resource_url("moves", name_or_url)
        )
        return self._parse(RawMove.from_json, self.get_json(url), url)

    def fetch_pokemon(self, name: str) -> RawPokemon:
        url = self.resource_url("pokemon", name)
        return self._parse(RawPokemon.from_json, self.get_json(url), url)

    def fetch_type(self, name: str) -> RawType:
        url = self.resource_url("types", name)
        return self._parse(RawType.from_json, self.get_json(url), url)
