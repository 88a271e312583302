"""
Stage 4: per-type details (``data/types.json``) and type icons.

The icon host indexes icons by the type's 1-based position in the type
list, not by name; the local copy is still named after the type.

A non-success status on one icon is logged and the rest are still fetched.
A transport error on an icon is fatal, unlike the best-effort Pokémon
sprite copy, even though ``types.json`` has already been written by then.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from dexharvest.errors import UpstreamStatusError
from dexharvest.extract import build_type_record, sprite_path, type_icon_url
from dexharvest.models import ItemResult, TypeRecord
from dexharvest.scraper.pokeapi import PokeAPIScraper


class TypeScraper(PokeAPIScraper):
    """
    Fetches every type listed in ``base.json["types"]``, then its icon.

    Any failure fetching type details is fatal.  A non-success status on an
    icon download is logged and the remaining icons are still fetched.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._type_names: list[str] = []

    @property
    def output_path(self) -> Path:
        return self.config.types_path

    def build_type(self, type_name: str) -> ItemResult[TypeRecord]:
        type_ = self.fetch_type(type_name)
        record = build_type_record(
            type_,
            self.config.locale,
            sprite_path(self.config.type_sprites_dir, type_name),
        )
        return ItemResult.success(type_name, record)

    def harvest(self) -> dict[str, Any]:
        self._type_names = self.load_name_list(self.config.base_index_path, "types")
        self.logger.info(f"Fetching details for {len(self._type_names)} types …")
        return self.accumulate((self.build_type(n) for n in self._type_names), "type")

    def download_type_icons(self, type_names: Sequence[str]) -> list[str]:
        """Download one icon per type; returns the names that succeeded."""
        self.config.type_sprites_dir.mkdir(parents=True, exist_ok=True)
        downloaded = []
        for position, type_name in enumerate(type_names, start=1):
            url = type_icon_url(self.config.icon_base_url, position)
            dest = self.config.type_sprites_dir / f"{type_name}.png"
            try:
                self.download(url, dest)
            except UpstreamStatusError as exc:
                self.logger.error(f"Error downloading icon for {type_name}: {exc}")
                continue
            downloaded.append(type_name)
            self.logger.info(f"Icon downloaded: {dest}")
        return downloaded

    def run(self) -> dict[str, Any]:
        document = super().run()
        if self.config.download_sprites:
            self.logger.info("Downloading type icons …")
            downloaded = self.download_type_icons(self._type_names)
            self.logger.info(
                f"{len(downloaded)}/{len(self._type_names)} icons saved in "
                f"{self.config.type_sprites_dir}"
            )
        return document
