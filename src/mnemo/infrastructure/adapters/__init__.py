# Infrastructure Card Store Adapters Package
from .memory_store import InMemoryCardRepository
from .yaml_store import DeckFileError, YamlCardRepository

__all__ = ["InMemoryCardRepository", "YamlCardRepository", "DeckFileError"]
