"""Selection bookkeeping for the theme list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SelectionState:
    """Last evaluated list position.

    ``generation`` identifies the list contents the index refers to; it
    changes whenever the displayed entries are replaced.
    """

    index: Optional[int] = None
    generation: int = 0
    evaluated: bool = False

    def is_change(self, index: Optional[int], generation: int) -> bool:
        """Return ``True`` if ``index`` differs from the last evaluation."""

        if not self.evaluated:
            return True
        return (index, generation) != (self.index, self.generation)

    def advance(
        self,
        index: Optional[int],
        generation: int,
    ) -> "SelectionState":
        """Return the state after evaluating ``index``."""

        return SelectionState(
            index=index,
            generation=generation,
            evaluated=True,
        )
