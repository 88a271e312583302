"""
Pure functions that turn parsed PokeAPI payloads into output records.

Nothing in here touches the network or the filesystem, so every rule about
defaults and locale lookups can be exercised directly from fixtures.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Iterable, Mapping, Optional, Sequence

from dexharvest.configs.constants import Constants
from dexharvest.errors import PayloadError
from dexharvest.models import (
    LocalizedName,
    MoveRecord,
    PokemonRecord,
    RawMove,
    RawPokemon,
    RawSpecies,
    RawType,
    TypeRecord,
)


def capitalize_first(text: str) -> str:
    """Upper-case the first character and leave the rest untouched."""
    return text[:1].upper() + text[1:]


def localized_name(names: Iterable[LocalizedName], locale: str) -> Optional[str]:
    """Return the first name whose language matches *locale*, else ``None``."""
    for entry in names:
        if entry.language == locale and entry.name is not None:
            return entry.name
    return None


def is_attack_move(damage_class: Optional[str]) -> bool:
    return damage_class in Constants.ATTACK_DAMAGE_CLASSES


def normalize_damage_class(damage_class: Optional[str]) -> str:
    """Collapse anything that is not physical/special into ``"unknown"``."""
    if is_attack_move(damage_class):
        return damage_class  # type: ignore[return-value]
    return Constants.UNKNOWN_DAMAGE_CLASS


def default_variety_name(species: RawSpecies) -> str:
    """Name of the Pokémon behind the first listed variety of *species*."""
    if not species.varieties:
        raise PayloadError(f"pokemon-species {species.name} lists no varieties")
    return species.varieties[0].name


def sprite_path(directory: Path | str, name: str) -> str:
    """Relative POSIX path of ``<directory>/<name>.png``."""
    return str(PurePosixPath(Path(directory).as_posix()) / f"{name}.png")


def type_icon_url(icon_base_url: str, position: int) -> str:
    """Icon URL for the type at 1-based *position* in the type list."""
    return f"{icon_base_url.rstrip('/')}/{position}.png"


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------


def build_move_record(move: RawMove, locale: str) -> MoveRecord:
    """
    Map a move detail onto a :class:`MoveRecord`.

    Absent or ``null`` numbers become 0, a missing type becomes
    ``"unknown"``, a missing locale entry becomes ``"Unknown"`` and any damage
    class other than physical/special becomes ``"unknown"``.
    """
    return MoveRecord(
        accuracy=move.accuracy or 0,
        power=move.power or 0,
        pp=move.pp or 0,
        type=move.type or Constants.UNKNOWN_TYPE,
        localized_name=localized_name(move.names, locale)
        or Constants.UNKNOWN_LOCALIZED_NAME,
        damage_class=normalize_damage_class(move.damage_class),
        priority=move.priority or 0,
    )


# ---------------------------------------------------------------------------
# Pokémon
# ---------------------------------------------------------------------------


def build_pokemon_record(
    pokemon: RawPokemon,
    attack_moves: Sequence[str],
    sprite: Optional[str],
) -> PokemonRecord:
    """
    Map a Pokémon detail onto a :class:`PokemonRecord`.

    *attack_moves* must already be classified and capped by the caller;
    only the first ``Constants.MAX_ATTACK_MOVES`` are kept regardless.
    """
    return PokemonRecord(
        id=pokemon.id,
        name=capitalize_first(pokemon.name),
        types=list(pokemon.types),
        base_stats={stat: value for stat, value in pokemon.stats},
        abilities=list(pokemon.abilities),
        moves=list(attack_moves[: Constants.MAX_ATTACK_MOVES]),
        sprite_path=sprite,
    )


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def type_display_name(names: Iterable[LocalizedName], locale: str) -> Optional[str]:
    """Localized type name as ``"Fuego"``: first letter upper, rest lower."""
    name = localized_name(names, locale)
    if name is None:
        return None
    return name[:1].upper() + name[1:].lower()


def simplify_damage_relations(
    relations: Mapping[str, Sequence[str]],
) -> dict[str, list[str]]:
    return {category: list(names) for category, names in relations.items()}


def build_type_record(type_: RawType, locale: str, sprite: str) -> TypeRecord:
    return TypeRecord(
        display_name=type_display_name(type_.names, locale),
        damage_relations=simplify_damage_relations(type_.damage_relations),
        sprite_path=sprite,
    )
