"""dexharvest: harvest PokeAPI data into local JSON files and sprites."""

__version__ = "1.0.0"
