"""Append-only list of evaluated expressions, replayed by ``H(i)``."""
from typing import List

from pydantic import BaseModel, Field

from expression_evaluator.common.errors import DomainError


class History(BaseModel):
    entries: List[str] = Field(default_factory=list, description="Evaluated expressions, oldest first")

    def get(self, index: int) -> str:
        """
        Return the expression stored at ``index``.

        :param int index: Zero-based position in the history
        :return: Expression text
        :rtype: str
        :raises DomainError: If no entry exists at that index
        """
        if not 0 <= index < len(self.entries):
            raise DomainError(f"No history entry {index} (history holds {len(self.entries)} entries)")
        return self.entries[index]

    def append(self, expression: str) -> None:
        self.entries.append(expression)

    def contains(self, expression: str) -> bool:
        return expression in self.entries

    def __len__(self) -> int:
        return len(self.entries)
