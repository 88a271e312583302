"""
Stage 3: per-Pokémon details (``data/pokemon.json``) and front sprites.

For each Pokémon the harvester issues one detail request, then walks the
listed moves in order and fetches each candidate until four attack moves
(physical or special) have been found.

Sprite handling
  The record's ``sprite`` path is ``<sprites_dir>/pokemon/<name>.png``
  whenever PokeAPI lists a front sprite.  Copying the bytes is best-effort:
  a failed download is logged and does not touch the record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from dexharvest.configs.constants import Constants
from dexharvest.errors import TransportError, UpstreamStatusError
from dexharvest.extract import build_pokemon_record, is_attack_move, sprite_path
from dexharvest.models import ItemResult, PokemonRecord, RawPokemon
from dexharvest.scraper.pokeapi import PokeAPIScraper


class PokemonScraper(PokeAPIScraper):
    """Fetches every Pokémon listed in ``base.json["pokemon"]``."""

    @property
    def output_path(self) -> Path:
        return self.config.pokemon_path

    def ensure_sprite_folder(self) -> Path:
        folder = self.config.pokemon_sprites_dir
        folder.mkdir(parents=True, exist_ok=True)
        return folder

    def select_attack_moves(self, pokemon: RawPokemon) -> list[str]:
        """
        Return up to ``MAX_ATTACK_MOVES`` attack move names in listed order.

        One request per candidate; any failure here is fatal.
        """
        attack_moves: list[str] = []
        for move_ref in pokemon.moves:
            if len(attack_moves) >= Constants.MAX_ATTACK_MOVES:
                break
            move = self.fetch_move(move_ref.url or move_ref.name)
            if is_attack_move(move.damage_class):
                attack_moves.append(move_ref.name)
        return attack_moves

    def record_sprite(self, pokemon_name: str, pokemon: RawPokemon) -> Optional[str]:
        """Compute the sprite path and, if enabled, copy the bytes there."""
        if not pokemon.front_default_sprite:
            return None

        path = sprite_path(self.config.pokemon_sprites_dir, pokemon_name)
        if self.config.download_sprites:
            try:
                self.download(
                    pokemon.front_default_sprite,
                    self.config.pokemon_sprites_dir / f"{pokemon_name}.png",
                )
            except (UpstreamStatusError, TransportError) as exc:
                self.logger.error(f"Error downloading sprite for {pokemon_name}: {exc}")
        return path

    def build_pokemon(self, pokemon_name: str) -> ItemResult[PokemonRecord]:
        try:
            pokemon = self.fetch_pokemon(pokemon_name)
        except UpstreamStatusError as exc:
            return ItemResult.skipped(pokemon_name, str(exc))

        attack_moves = self.select_attack_moves(pokemon)
        sprite = self.record_sprite(pokemon_name, pokemon)
        return ItemResult.success(
            pokemon_name, build_pokemon_record(pokemon, attack_moves, sprite)
        )

    def harvest(self) -> dict[str, Any]:
        self.ensure_sprite_folder()
        pokemon_names = self.load_name_list(self.config.base_index_path, "pokemon")
        self.logger.info(f"Fetching details for {len(pokemon_names)} Pokémon …")
        return self.accumulate(self.map_items(self.build_pokemon, pokemon_names), "Pokémon")
