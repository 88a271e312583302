"""
Stage 1: build the candidate name lists (``data/base.json``).

  pokemon : default-variety Pokémon name of every species
  moves   : every physical or special move
  types   : every type name, verbatim

Fail-fast: any error aborts the run before anything is written.
"""

from __future__ import annotations

from pathlib import Path

from dexharvest.extract import default_variety_name, is_attack_move
from dexharvest.models import BaseIndex
from dexharvest.scraper.pokeapi import PokeAPIScraper


class BaseIndexScraper(PokeAPIScraper):
    """Collects the species, attack-move and type catalogs."""

    @property
    def output_path(self) -> Path:
        return self.config.base_index_path

    def collect_pokemon_names(self) -> list[str]:
        """Resolve each species to the Pokémon of its first listed variety."""
        species_list = self.fetch_resource_list("species")
        names = []
        for species_ref in species_list.results:
            species = self.fetch_species(species_ref.url or f"pokemon-species/{species_ref.name}")
            names.append(default_variety_name(species))
            self.logger.info(f"Processed species: {species.name} → {names[-1]}")
        return names

    def collect_attack_moves(self) -> list[str]:
        """Keep the moves whose damage class is physical or special."""
        move_list = self.fetch_resource_list("moves")
        names = []
        for move_ref in move_list.results:
            move = self.fetch_move(move_ref.url or move_ref.name)
            if is_attack_move(move.damage_class):
                names.append(move.name or move_ref.name)
                self.logger.info(f"Processed move: {names[-1]} ({move.damage_class})")
            else:
                self.logger.debug(f"Dropped move: {move_ref.name}")
        return names

    def collect_type_names(self) -> list[str]:
        names = [ref.name for ref in self.fetch_resource_list("types").results]
        for name in names:
            self.logger.info(f"Processed type: {name}")
        return names

    def harvest(self) -> dict[str, list[str]]:
        self.logger.info("[1/3] Fetching Pokémon …")
        pokemon = self.collect_pokemon_names()

        self.logger.info("[2/3] Fetching attack moves …")
        moves = self.collect_attack_moves()

        self.logger.info("[3/3] Fetching types …")
        types = self.collect_type_names()

        self.logger.info(
            f"Base index: {len(pokemon)} Pokémon | {len(moves)} moves | {len(types)} types"
        )
        return BaseIndex(pokemon=pokemon, moves=moves, types=types).to_json()
