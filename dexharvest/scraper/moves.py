"""Stage 2: per-move details (``data/moves.json``)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from dexharvest.errors import UpstreamStatusError
from dexharvest.extract import build_move_record
from dexharvest.models import ItemResult, MoveRecord
from dexharvest.scraper.pokeapi import PokeAPIScraper


class MoveScraper(PokeAPIScraper):
    """
    Fetches every move listed in ``base.json["moves"]``.

    A move whose detail request answers with a non-success status is
    skipped; transport and parse failures abort the run.
    """

    @property
    def output_path(self) -> Path:
        return self.config.moves_path

    def build_move(self, move_name: str) -> ItemResult[MoveRecord]:
        try:
            move = self.fetch_move(move_name)
        except UpstreamStatusError as exc:
            return ItemResult.skipped(move_name, str(exc))
        return ItemResult.success(move_name, build_move_record(move, self.config.locale))

    def harvest(self) -> dict[str, Any]:
        move_names = self.load_name_list(self.config.base_index_path, "moves")
        self.logger.info(f"Fetching details for {len(move_names)} moves …")
        return self.accumulate(self.map_items(self.build_move, move_names), "move")
