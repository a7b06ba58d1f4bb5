from __future__ import annotations

"""Per-character conversation memory.

Entries live in process memory only and are keyed by character name. Each
entry keeps a sliding window of the most recent turns; the oldest turns are
dropped first once the window is full.

The store does no locking. Two concurrent chats for the same character may
interleave their appends, which can drop or duplicate a turn under
contention. A restart discards everything.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 50


@dataclass(frozen=True)
class ChatTurn:
    user: str
    ai: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class MemoryEntry:
    personality: str = ""
    story: str = ""
    training: Optional[str] = None
    conversations: List[ChatTurn] = field(default_factory=list)


class CharacterMemoryStore:
    """Name-keyed memory with a bounded turn window per character.

    ``max_characters`` of 0 (the default) never evicts a character; a
    positive value evicts the least recently inserted name when a new one
    would exceed the bound.
    """

    def __init__(self, max_turns: int = DEFAULT_MAX_TURNS, max_characters: int = 0) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self.max_characters = max(0, max_characters)
        self._entries: "OrderedDict[str, MemoryEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def get(self, name: str) -> Optional[MemoryEntry]:
        return self._entries.get(name)

    def get_or_create(self, name: str, personality: str, story: str) -> MemoryEntry:
        entry = self._entries.get(name)
        if entry is None:
            entry = MemoryEntry(personality=personality, story=story)
            self._insert(name, entry)
            logger.info("Created memory entry for character=%s", name)
        return entry

    def set(self, name: str, entry: MemoryEntry) -> None:
        if name in self._entries:
            self._entries[name] = entry
        else:
            self._insert(name, entry)

    def append_turn(self, name: str, turn: ChatTurn) -> MemoryEntry:
        entry = self._entries[name]
        entry.conversations.append(turn)
        if len(entry.conversations) > self.max_turns:
            entry.conversations = entry.conversations[-self.max_turns:]
        return entry

    def _insert(self, name: str, entry: MemoryEntry) -> None:
        self._entries[name] = entry
        while self.max_characters and len(self._entries) > self.max_characters:
            evicted, _ = self._entries.popitem(last=False)
            logger.info("Evicted memory entry for character=%s", evicted)
