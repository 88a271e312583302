"""
Constants
"""

# Ignore pylint warnings
# pylint: disable = line-too-long


class Constants:
    """
    Constants configurations
    """

    POKEAPI_BASE_URL = "https://pokeapi.co/api/v2"
    TYPE_ICON_BASE_URL = "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/types/generation-ix/scarlet-violet"

    # Large enough to return every catalog entry in a single page
    LIST_LIMIT = 10000

    LOCALE = "es"

    POKEAPI_RESOURCES = {
        "species": "pokemon-species",
        "moves": "move",
        "types": "type",
        "pokemon": "pokemon",
    }

    DATA_DIR = "data"
    SPRITES_DIR = "sprites"
    OUTPUT_FILES = {
        "base": "base.json",
        "moves": "moves.json",
        "pokemon": "pokemon.json",
        "types": "types.json",
    }

    ATTACK_DAMAGE_CLASSES = frozenset({"physical", "special"})
    UNKNOWN_DAMAGE_CLASS = "unknown"
    UNKNOWN_TYPE = "unknown"
    UNKNOWN_LOCALIZED_NAME = "Unknown"
    MAX_ATTACK_MOVES = 4

    # PokeAPI is a free public service, keep it polite
    CALLS_PER_SECOND = 1.5
    MAX_WORKERS = 4
    USER_AGENT = "dexharvest/1.0 (pokeapi-harvester)"
