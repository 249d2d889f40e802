"""Read-only, case-insensitive name tables for operators and functions."""
from typing import Dict, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class Registry(Generic[T]):
    """
    Table filled once at construction and only read afterwards.

    :param dict entries: Mapping of name to entry; names are matched ignoring case
    """

    def __init__(self, entries: Dict[str, T]):
        self._entries: Dict[str, T] = {name.casefold(): entry for name, entry in entries.items()}

    def get(self, name: Optional[str]) -> Optional[T]:
        if name is None:
            return None
        return self._entries.get(name.casefold())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._entries

    def __getitem__(self, name: str) -> T:
        return self._entries[name.casefold()]

    def __iter__(self) -> Iterator[T]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
