import json
import logging
from pathlib import Path

import pytest
import requests

from dexharvest.errors import InputFileError, PayloadError, TransportError, UpstreamStatusError
from dexharvest.scraper import BaseIndexScraper, MoveScraper, PokemonScraper, TypeScraper
from fakes import API, ICONS, FakeResponse, load_fixture, move_body, write_base_index


def read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


class CallCounter(logging.Handler):
    """Notes how many requests had been made when each matching line was logged."""

    def __init__(self, session, prefix):
        super().__init__(logging.INFO)
        self.session = session
        self.prefix = prefix
        self.counts = []

    def emit(self, record):
        if record.getMessage().startswith(self.prefix):
            self.counts.append(len(self.session.calls))


@pytest.fixture
def calls_at_log(caplog, session):
    attached = []

    def attach(logger_name, prefix):
        caplog.set_level(logging.INFO, logger=logger_name)
        handler = CallCounter(session, prefix)
        logging.getLogger(logger_name).addHandler(handler)
        attached.append((logger_name, handler))
        return handler

    yield attach
    for logger_name, handler in attached:
        logging.getLogger(logger_name).removeHandler(handler)


# ---------------------------------------------------------------------------
# Base index
# ---------------------------------------------------------------------------


def add_base_index_routes(session):
    session.add(
        f"{API}/pokemon-species?limit=10000",
        {"results": [{"name": "bulbasaur", "url": f"{API}/pokemon-species/1/"}]},
    )
    session.add(f"{API}/pokemon-species/1/", load_fixture("species_bulbasaur.json"))
    session.add(
        f"{API}/move?limit=10000",
        {
            "results": [
                {"name": "pound", "url": f"{API}/move/1/"},
                {"name": "swords-dance", "url": f"{API}/move/14/"},
                {"name": "ember", "url": f"{API}/move/52/"},
                {"name": "mystery", "url": f"{API}/move/999/"},
            ]
        },
    )
    session.add(f"{API}/move/1/", move_body("pound", "physical"))
    session.add(f"{API}/move/14/", move_body("swords-dance", "status"))
    session.add(f"{API}/move/52/", move_body("ember", "special"))
    session.add(f"{API}/move/999/", move_body("mystery", None))
    session.add(
        f"{API}/type?limit=10000",
        {"results": [{"name": "normal", "url": ""}, {"name": "fighting", "url": ""}]},
    )


def test_base_index_builds_all_three_lists(config, session):
    add_base_index_routes(session)

    document = BaseIndexScraper(config=config, session=session).run()

    assert document == {
        "pokemon": ["bulbasaur"],
        "moves": ["pound", "ember"],
        "types": ["normal", "fighting"],
    }
    assert read_json(Path("data/base.json")) == document
    assert list(read_json(Path("data/base.json"))) == ["pokemon", "moves", "types"]


def test_base_index_uses_first_variety(config, session):
    add_base_index_routes(session)
    session.add(
        f"{API}/pokemon-species/1/",
        {
            "name": "deoxys",
            "varieties": [
                {"pokemon": {"name": "deoxys-normal"}},
                {"pokemon": {"name": "deoxys-attack"}},
            ],
        },
    )

    document = BaseIndexScraper(config=config, session=session).run()

    assert document["pokemon"] == ["deoxys-normal"]


def test_base_index_logs_progress_as_each_item_is_fetched(config, session, calls_at_log):
    add_base_index_routes(session)
    species = calls_at_log("BaseIndexScraper", "Processed species")
    moves = calls_at_log("BaseIndexScraper", "Processed move")
    types = calls_at_log("BaseIndexScraper", "Processed type")

    BaseIndexScraper(config=config, session=session).run()

    # requests: species list, species/1, move list, move/1, 14, 52, 999, type list
    assert species.counts == [2]
    assert moves.counts == [4, 6]
    assert types.counts == [8, 8]


def test_base_index_output_is_byte_identical_across_runs(config, session):
    add_base_index_routes(session)

    BaseIndexScraper(config=config, session=session).run()
    first = Path("data/base.json").read_bytes()
    BaseIndexScraper(config=config, session=session).run()

    assert Path("data/base.json").read_bytes() == first


@pytest.mark.parametrize(
    "url,value",
    [
        (f"{API}/move/52/", FakeResponse(500, {"detail": "oops"})),
        (f"{API}/move/52/", requests.Timeout("slow")),
        (f"{API}/type?limit=10000", FakeResponse(200, b"not json")),
    ],
)
def test_base_index_is_fail_fast_and_writes_nothing(config, session, url, value):
    add_base_index_routes(session)
    session.add(url, value)

    with pytest.raises((UpstreamStatusError, TransportError, PayloadError)):
        BaseIndexScraper(config=config, session=session).run()

    assert not Path("data/base.json").exists()


def test_base_index_run_does_not_overwrite_on_failure(config, session):
    write_base_index(config, pokemon=["old"])
    add_base_index_routes(session)
    session.add(f"{API}/pokemon-species/1/", FakeResponse(404, {}))

    with pytest.raises(UpstreamStatusError):
        BaseIndexScraper(config=config, session=session).run()

    assert read_json(Path("data/base.json"))["pokemon"] == ["old"]


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------


def test_moves_harvester_skips_unavailable_moves(config, session):
    write_base_index(config, moves=["flamethrower", "missing", "pound"])
    session.add(f"{API}/move/flamethrower", load_fixture("move_flamethrower.json"))
    session.add(f"{API}/move/missing", FakeResponse(404, {"detail": "Not found."}))
    session.add(f"{API}/move/pound", move_body("pound", "physical", power=40))

    document = MoveScraper(config=config, session=session).run()

    assert list(document) == ["flamethrower", "pound"]
    assert document["flamethrower"] == {
        "accuracy": 100,
        "power": 0,
        "pp": 15,
        "type": "unknown",
        "name": "Lanzallamas",
        "damage_class": "special",
        "priority": 0,
    }
    assert document["pound"]["power"] == 40
    assert read_json(Path("data/moves.json")) == document


def test_moves_harvester_transport_failure_is_fatal(config, session):
    write_base_index(config, moves=["pound", "ember"])
    session.add(f"{API}/move/pound", move_body("pound", "physical"))
    session.add(f"{API}/move/ember", requests.ConnectionError("reset"))

    with pytest.raises(TransportError):
        MoveScraper(config=config, session=session).run()

    assert not Path("data/moves.json").exists()


def test_moves_harvester_requires_base_index(config, session):
    with pytest.raises(InputFileError):
        MoveScraper(config=config, session=session).run()

    assert session.calls == []


def test_moves_harvester_output_is_byte_identical_across_runs(config, session):
    write_base_index(config, moves=["flamethrower", "pound"])
    session.add(f"{API}/move/flamethrower", load_fixture("move_flamethrower.json"))
    session.add(f"{API}/move/pound", move_body("pound", "physical"))

    MoveScraper(config=config, session=session).run()
    first = Path("data/moves.json").read_bytes()
    MoveScraper(config=config, session=session).run()

    assert Path("data/moves.json").read_bytes() == first


def test_moves_harvester_logs_each_move_before_fetching_the_next(config, session, calls_at_log):
    write_base_index(config, moves=["pound", "missing", "ember", "cut"])
    for name in ("pound", "ember", "cut"):
        session.add(f"{API}/move/{name}", move_body(name, "physical"))
    processed = calls_at_log("MoveScraper", "Processed move")
    skipped = calls_at_log("MoveScraper", "Skipped move")

    MoveScraper(config=config, session=session).run()

    assert processed.counts == [1, 3, 4]
    assert skipped.counts == [2]


def test_moves_harvester_with_workers_keeps_input_order(config, session):
    config.workers = 3
    names = [f"move-{i}" for i in range(8)]
    write_base_index(config, moves=names)
    for name in names:
        session.add(f"{API}/move/{name}", move_body(name, "special"))
    session.add(f"{API}/move/move-5", FakeResponse(404, {}))

    document = MoveScraper(config=config, session=session).run()

    assert list(document) == [n for n in names if n != "move-5"]


# ---------------------------------------------------------------------------
# Pokémon
# ---------------------------------------------------------------------------

BULBASAUR_MOVE_CLASSES = {
    "13": "special",  # razor-wind
    "14": "status",  # swords-dance
    "15": "physical",  # cut
    "45": "status",  # growl
    "22": "physical",  # vine-whip
    "33": "physical",  # tackle
    "76": "special",  # solar-beam
}


def add_bulbasaur_routes(session, sprite=FakeResponse(200, b"\x89PNG-bulbasaur")):
    session.add(f"{API}/pokemon/bulbasaur", load_fixture("pokemon_bulbasaur.json"))
    for move_id, damage_class in BULBASAUR_MOVE_CLASSES.items():
        session.add(f"{API}/move/{move_id}/", move_body(move_id, damage_class))
    session.add("https://sprites.test/pokemon/1.png", sprite)


def test_pokemon_harvester_collects_first_four_attack_moves(config, session):
    write_base_index(config, pokemon=["bulbasaur"])
    add_bulbasaur_routes(session)

    document = PokemonScraper(config=config, session=session).run()

    record = document["bulbasaur"]
    assert record["name"] == "Bulbasaur"
    assert record["moves"] == ["razor-wind", "cut", "vine-whip", "tackle"]
    assert record["sprite"] == "sprites/pokemon/bulbasaur.png"
    assert Path("sprites/pokemon/bulbasaur.png").read_bytes() == b"\x89PNG-bulbasaur"
    # stops classifying once four attack moves are found
    assert f"{API}/move/76/" not in session.calls
    move_calls = [c for c in session.calls if "/move/" in c]
    assert move_calls == [f"{API}/move/{i}/" for i in ("13", "14", "15", "45", "22", "33")]


def test_pokemon_harvester_skips_unavailable_pokemon(config, session):
    write_base_index(config, pokemon=["missingno", "bulbasaur"])
    add_bulbasaur_routes(session)

    document = PokemonScraper(config=config, session=session).run()

    assert list(document) == ["bulbasaur"]


def test_pokemon_harvester_move_classification_failure_is_fatal(config, session):
    write_base_index(config, pokemon=["bulbasaur"])
    add_bulbasaur_routes(session)
    session.add(f"{API}/move/15/", FakeResponse(503, {}))

    with pytest.raises(UpstreamStatusError):
        PokemonScraper(config=config, session=session).run()

    assert not Path("data/pokemon.json").exists()


def test_pokemon_sprite_path_is_recorded_when_download_fails(config, session):
    write_base_index(config, pokemon=["bulbasaur"])
    add_bulbasaur_routes(session, sprite=FakeResponse(404, b""))

    document = PokemonScraper(config=config, session=session).run()

    assert document["bulbasaur"]["sprite"] == "sprites/pokemon/bulbasaur.png"
    assert not Path("sprites/pokemon/bulbasaur.png").exists()


def test_pokemon_sprite_transport_error_is_not_fatal(config, session):
    write_base_index(config, pokemon=["bulbasaur"])
    add_bulbasaur_routes(session, sprite=requests.ConnectionError("reset"))

    document = PokemonScraper(config=config, session=session).run()

    assert document["bulbasaur"]["sprite"] == "sprites/pokemon/bulbasaur.png"


def test_pokemon_without_sprite_has_no_sprite_key(config, session):
    write_base_index(config, pokemon=["ditto"])
    session.add(
        f"{API}/pokemon/ditto",
        {"id": 132, "name": "ditto", "moves": [], "sprites": {"front_default": None}},
    )

    document = PokemonScraper(config=config, session=session).run()

    assert "sprite" not in document["ditto"]
    assert Path("sprites/pokemon").is_dir()


def test_pokemon_no_sprites_flag_records_path_without_fetching(config, session):
    config.download_sprites = False
    write_base_index(config, pokemon=["bulbasaur"])
    add_bulbasaur_routes(session)

    document = PokemonScraper(config=config, session=session).run()

    assert document["bulbasaur"]["sprite"] == "sprites/pokemon/bulbasaur.png"
    assert "https://sprites.test/pokemon/1.png" not in session.calls


def test_pokemon_harvester_logs_each_pokemon_as_it_finishes(config, session, calls_at_log):
    write_base_index(config, pokemon=["missingno", "bulbasaur"])
    add_bulbasaur_routes(session)
    skipped = calls_at_log("PokemonScraper", "Skipped Pokémon")
    processed = calls_at_log("PokemonScraper", "Processed Pokémon")

    PokemonScraper(config=config, session=session).run()

    # missingno, then bulbasaur: detail, six move candidates, sprite
    assert skipped.counts == [1]
    assert processed.counts == [9]


def test_pokemon_output_is_byte_identical_across_runs(config, session):
    write_base_index(config, pokemon=["bulbasaur", "ditto"])
    add_bulbasaur_routes(session)
    session.add(
        f"{API}/pokemon/ditto",
        {"id": 132, "name": "ditto", "moves": [], "sprites": {"front_default": None}},
    )

    PokemonScraper(config=config, session=session).run()
    first = Path("data/pokemon.json").read_bytes()
    first_sprite = Path("sprites/pokemon/bulbasaur.png").read_bytes()
    PokemonScraper(config=config, session=session).run()

    assert Path("data/pokemon.json").read_bytes() == first
    assert Path("sprites/pokemon/bulbasaur.png").read_bytes() == first_sprite


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

TYPE_NAMES = ["normal", "fighting", "flying", "poison", "ground"]


def add_type_routes(session):
    for position, name in enumerate(TYPE_NAMES, start=1):
        session.add(
            f"{API}/type/{name}",
            {
                "name": name,
                "names": [{"language": {"name": "es"}, "name": name.upper()}],
                "damage_relations": {
                    "double_damage_to": [{"name": "rock", "url": ""}],
                    "no_damage_to": [],
                },
            },
        )
        session.add(f"{ICONS}/{position}.png", FakeResponse(200, f"icon-{position}".encode()))


def test_types_harvester_writes_records_and_icons(config, session):
    write_base_index(config, types=TYPE_NAMES)
    add_type_routes(session)

    document = TypeScraper(config=config, session=session).run()

    assert list(document) == TYPE_NAMES
    assert document["fighting"] == {
        "name": "Fighting",
        "damage_relations": {"double_damage_to": ["rock"], "no_damage_to": []},
        "sprite_path": "sprites/types/fighting.png",
    }
    # icons are fetched by 1-based position but saved by name
    assert Path("sprites/types/flying.png").read_bytes() == b"icon-3"


def test_type_icon_404_does_not_stop_later_icons(config, session):
    write_base_index(config, types=TYPE_NAMES)
    add_type_routes(session)
    session.add(f"{ICONS}/3.png", FakeResponse(404, b""))

    TypeScraper(config=config, session=session).run()

    assert not Path("sprites/types/flying.png").exists()
    assert Path("sprites/types/poison.png").read_bytes() == b"icon-4"
    assert Path("sprites/types/ground.png").read_bytes() == b"icon-5"
    assert read_json(Path("data/types.json"))["flying"]["sprite_path"] == "sprites/types/flying.png"


def test_type_detail_failure_is_fatal(config, session):
    write_base_index(config, types=TYPE_NAMES)
    add_type_routes(session)
    session.add(f"{API}/type/poison", FakeResponse(404, {}))

    with pytest.raises(UpstreamStatusError):
        TypeScraper(config=config, session=session).run()

    assert not Path("data/types.json").exists()
    assert not any(c.startswith(ICONS) for c in session.calls)


def test_types_harvester_ignores_workers_setting(config, session, calls_at_log):
    config.workers = 4
    write_base_index(config, types=TYPE_NAMES)
    add_type_routes(session)
    processed = calls_at_log("TypeScraper", "Processed type")

    TypeScraper(config=config, session=session).run()

    assert processed.counts == [1, 2, 3, 4, 5]


def test_types_output_is_byte_identical_across_runs(config, session):
    write_base_index(config, types=TYPE_NAMES)
    add_type_routes(session)

    TypeScraper(config=config, session=session).run()
    first = Path("data/types.json").read_bytes()
    TypeScraper(config=config, session=session).run()

    assert Path("data/types.json").read_bytes() == first
    assert Path("sprites/types/normal.png").read_bytes() == b"icon-1"


def test_type_without_locale_entry_has_null_name(config, session):
    config.locale = "ja"
    write_base_index(config, types=["normal"])
    add_type_routes(session)

    document = TypeScraper(config=config, session=session).run()

    assert document["normal"]["name"] is None
