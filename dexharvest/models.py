"""
Typed views over PokeAPI payloads and the records dexharvest writes.

Upstream shapes
  Every PokeAPI body is parsed into a frozen dataclass through a
  ``from_json`` classmethod.  Fields that PokeAPI may omit or send as
  ``null`` are ``Optional`` here; fields we cannot do without (an id, a
  ref's name) raise :class:`~dexharvest.errors.PayloadError`.

Output records
  One dataclass per output file entry, each with a ``to_json`` that emits
  the exact on-disk key layout.

ItemResult
  Per-item outcome of a detail fetch: either a record or the reason the
  item was skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Optional, TypeVar

from dexharvest.errors import PayloadError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    value = data.get(key) if isinstance(data, Mapping) else None
    if value is None:
        raise PayloadError(f"{where} is missing required field '{key}'")
    return value


def _ref_name(value: Any) -> Optional[str]:
    """Return ``value["name"]`` for a ``{name, url}`` object, else ``None``."""
    if isinstance(value, Mapping):
        name = value.get("name")
        return str(name) if name is not None else None
    return None


def _optional_int(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise PayloadError(f"Field '{key}' is a boolean, expected an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise PayloadError(f"Field '{key}' is not an integer: {value!r}") from exc


def _entries(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    return list(value) if isinstance(value, list) else []


# ---------------------------------------------------------------------------
# Upstream shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NamedRef:
    name: str
    url: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "NamedRef":
        return cls(
            name=str(_require(data, "name", "named resource")),
            url=str(data.get("url") or ""),
        )


@dataclass(frozen=True)
class LocalizedName:
    language: Optional[str]
    name: Optional[str]

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "LocalizedName":
        if not isinstance(data, Mapping):
            return cls(language=None, name=None)
        name = data.get("name")
        return cls(
            language=_ref_name(data.get("language")),
            name=str(name) if name is not None else None,
        )


@dataclass(frozen=True)
class ResourceList:
    """Body of a list endpoint such as ``/move?limit=10000``."""

    results: tuple[NamedRef, ...]

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ResourceList":
        results = _require(data, "results", "resource list")
        if not isinstance(results, list):
            raise PayloadError("resource list 'results' is not an array")
        return cls(results=tuple(NamedRef.from_json(r) for r in results))


@dataclass(frozen=True)
class RawSpecies:
    name: str
    varieties: tuple[NamedRef, ...]

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "RawSpecies":
        name = str(_require(data, "name", "pokemon-species"))
        varieties = tuple(
            NamedRef.from_json(_require(v, "pokemon", f"variety of {name}"))
            for v in _entries(data, "varieties")
        )
        return cls(name=name, varieties=varieties)


@dataclass(frozen=True)
class RawMove:
    name: Optional[str] = None
    accuracy: Optional[int] = None
    power: Optional[int] = None
    pp: Optional[int] = None
    priority: Optional[int] = None
    type: Optional[str] = None
    damage_class: Optional[str] = None
    names: tuple[LocalizedName, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "RawMove":
        if not isinstance(data, Mapping):
            raise PayloadError("move detail is not a JSON object")
        name = data.get("name")
        return cls(
            name=str(name) if name is not None else None,
            accuracy=_optional_int(data.get("accuracy"), "accuracy"),
            power=_optional_int(data.get("power"), "power"),
            pp=_optional_int(data.get("pp"), "pp"),
            priority=_optional_int(data.get("priority"), "priority"),
            type=_ref_name(data.get("type")),
            damage_class=_ref_name(data.get("damage_class")),
            names=tuple(LocalizedName.from_json(n) for n in _entries(data, "names")),
        )


@dataclass(frozen=True)
class RawPokemon:
    id: int
    name: str
    types: tuple[str, ...] = ()
    stats: tuple[tuple[str, int], ...] = ()
    abilities: tuple[str, ...] = ()
    moves: tuple[NamedRef, ...] = ()
    front_default_sprite: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "RawPokemon":
        pokemon_id = _optional_int(_require(data, "id", "pokemon"), "id")
        name = str(_require(data, "name", "pokemon"))
        where = f"pokemon {name}"

        types = tuple(
            NamedRef.from_json(_require(t, "type", where)).name
            for t in _entries(data, "types")
        )
        stats = tuple(
            (
                NamedRef.from_json(_require(s, "stat", where)).name,
                _optional_int(s.get("base_stat"), "base_stat") or 0,
            )
            for s in _entries(data, "stats")
        )
        abilities = tuple(
            NamedRef.from_json(_require(a, "ability", where)).name
            for a in _entries(data, "abilities")
        )
        moves = tuple(
            NamedRef.from_json(_require(m, "move", where))
            for m in _entries(data, "moves")
        )
        sprites = data.get("sprites") or {}
        sprite = sprites.get("front_default") if isinstance(sprites, Mapping) else None

        return cls(
            id=pokemon_id,
            name=name,
            types=types,
            stats=stats,
            abilities=abilities,
            moves=moves,
            front_default_sprite=str(sprite) if sprite else None,
        )


@dataclass(frozen=True)
class RawType:
    name: Optional[str] = None
    names: tuple[LocalizedName, ...] = ()
    # category -> type names; dict keeps the upstream category order
    damage_relations: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "RawType":
        if not isinstance(data, Mapping):
            raise PayloadError("type detail is not a JSON object")
        name = data.get("name")
        relations: dict[str, tuple[str, ...]] = {}
        raw_relations = data.get("damage_relations") or {}
        if isinstance(raw_relations, Mapping):
            for category, refs in raw_relations.items():
                relations[str(category)] = tuple(
                    NamedRef.from_json(ref).name for ref in (refs or [])
                )
        return cls(
            name=str(name) if name is not None else None,
            names=tuple(LocalizedName.from_json(n) for n in _entries(data, "names")),
            damage_relations=relations,
        )


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseIndex:
    """Candidate name lists consumed by the three detail harvesters."""

    pokemon: list[str] = field(default_factory=list)
    moves: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)

    def to_json(self) -> dict[str, list[str]]:
        return {
            "pokemon": list(self.pokemon),
            "moves": list(self.moves),
            "types": list(self.types),
        }


@dataclass(frozen=True)
class MoveRecord:
    accuracy: int
    power: int
    pp: int
    type: str
    localized_name: str
    damage_class: str
    priority: int

    def to_json(self) -> dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "power": self.power,
            "pp": self.pp,
            "type": self.type,
            "name": self.localized_name,
            "damage_class": self.damage_class,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class PokemonRecord:
    id: int
    name: str
    types: list[str]
    base_stats: dict[str, int]
    abilities: list[str]
    moves: list[str]
    sprite_path: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "types": list(self.types),
            "base_stats": dict(self.base_stats),
            "abilities": list(self.abilities),
            "moves": list(self.moves),
        }
        if self.sprite_path is not None:
            payload["sprite"] = self.sprite_path
        return payload


@dataclass(frozen=True)
class TypeRecord:
    display_name: Optional[str]
    damage_relations: dict[str, list[str]]
    sprite_path: str

    def to_json(self) -> dict[str, Any]:
        return {
            "name": self.display_name,
            "damage_relations": {k: list(v) for k, v in self.damage_relations.items()},
            "sprite_path": self.sprite_path,
        }


# ---------------------------------------------------------------------------
# Per-item outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemResult(Generic[T]):
    """Outcome of processing one named item.

    ``record`` is set on success, ``reason`` when the item was skipped.
    """

    name: str
    record: Optional[T] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, name: str, record: T) -> "ItemResult[T]":
        return cls(name=name, record=record)

    @classmethod
    def skipped(cls, name: str, reason: str) -> "ItemResult[T]":
        return cls(name=name, reason=reason)
