from characters.core.memory import CharacterMemoryStore, ChatTurn, MemoryEntry
from characters.gateway import ModelGateway, ModelGatewayError
from characters.media import avatar_url, resolve_image

__all__ = [
    "CharacterMemoryStore",
    "ChatTurn",
    "MemoryEntry",
    "ModelGateway",
    "ModelGatewayError",
    "avatar_url",
    "resolve_image",
]
