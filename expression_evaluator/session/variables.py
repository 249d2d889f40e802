"""Case-insensitive variable store shared by every expression of a session."""
from typing import ClassVar, Dict, List, Tuple

from pydantic import BaseModel, PrivateAttr

from expression_evaluator.common.errors import DomainError
from expression_evaluator.core.values import Value


class VariableStore(BaseModel):
    """
    Mapping of variable name to Value.

    Lookups ignore case; a variable keeps the spelling it was first defined with.
    Longer names starting with ``x``, ``o``, ``b`` or ``h`` are reserved for hexadecimal,
    octal, binary and history literals.
    """

    RESERVED_PREFIXES: ClassVar[str] = "xobh"

    # casefolded name -> (display name, value)
    _entries: Dict[str, Tuple[str, Value]] = PrivateAttr(default_factory=dict)

    @classmethod
    def check_name(cls, name: str) -> None:
        """
        Reject names that collide with literal prefixes.

        A single letter is never a literal, so ``x`` alone is a valid name.

        :param str name: Candidate variable name
        :raises DomainError: If the name is empty or starts with a reserved letter
        """
        if not name:
            raise DomainError("Variable name cannot be empty")
        if len(name) > 1 and name[0] in cls.RESERVED_PREFIXES:
            raise DomainError(f"Variable name '{name}' not allowed: first char '{name[0]}' is reserved")

    def put(self, name: str, value: Value) -> None:
        self.check_name(name)
        key = name.casefold()
        display = self._entries[key][0] if key in self._entries else name
        self._entries[key] = (display, value.unnamed())

    def get(self, name: str) -> Value:
        """
        :raises DomainError: If the variable does not exist
        """
        try:
            return self._entries[name.casefold()][1]
        except KeyError:
            raise DomainError(f"Unknown variable '{name}'") from None

    def contains_key(self, name: str) -> bool:
        return name.casefold() in self._entries

    def declare(self, name: str) -> None:
        """Create the variable bound to zero unless it already exists."""
        if not self.contains_key(name):
            self.put(name, Value.from_real(0))

    def names(self) -> List[str]:
        return [display for display, _ in self._entries.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains_key(name)

    def __len__(self) -> int:
        return len(self._entries)
