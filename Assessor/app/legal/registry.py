from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


FEDLEX_BV = "https://www.fedlex.admin.ch/eli/cc/1999/404/de"
FEDLEX_ZGB = "https://www.fedlex.admin.ch/eli/cc/24/233_245_233/de"
FEDLEX_OR = "https://www.fedlex.admin.ch/eli/cc/27/317_321_377/de"
FEDLEX_DSG = "https://www.fedlex.admin.ch/eli/cc/2022/491/de"
FEDLEX_STGB = "https://www.fedlex.admin.ch/eli/cc/54/757_781_799/de"


@dataclass(frozen=True)
class LawEntry:
    abbreviation: str
    url: str


class LawUrlRegistry:
    """Read-only lookup from law alias to its canonical entry.

    Aliases cover the abbreviation, the German title and the SR number of a
    law. Lookup tries the key as given, then its upper-cased form.
    """

    def __init__(self, entries: Mapping[str, LawEntry]):
        self._entries = MappingProxyType(dict(entries))

    def resolve(self, key: str) -> Optional[LawEntry]:
        if not key:
            return None
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries.get(key.upper())
        return entry


def article_url(base_url: str, article: Optional[str]) -> str:
    if article:
        return f"{base_url}#art_{article}"
    return base_url


def _build_default_registry() -> LawUrlRegistry:
    laws = [
        (LawEntry("BV", FEDLEX_BV), ["BV", "Bundesverfassung", "SR 101"]),
        (LawEntry("ZGB", FEDLEX_ZGB), ["ZGB", "Zivilgesetzbuch", "SR 210"]),
        (LawEntry("OR", FEDLEX_OR), ["OR", "Obligationenrecht", "SR 220"]),
        (
            LawEntry("DSG", FEDLEX_DSG),
            ["DSG", "Datenschutzgesetz", "DSG 2023", "SR 235.1"],
        ),
        (LawEntry("StGB", FEDLEX_STGB), ["StGB", "Strafgesetzbuch", "SR 311.0"]),
    ]
    entries = {}
    for entry, aliases in laws:
        for alias in aliases:
            entries[alias] = entry
    return LawUrlRegistry(entries)


DEFAULT_LAW_REGISTRY = _build_default_registry()
