"""
EntityDesk Kernel -- Reveal Window

Client-side incremental disclosure. All matching records are already in
memory (one bounded fetch); the list shows a growing prefix of the sorted,
filtered records. The prefix resets to the first step whenever the
filtered size changes.
"""

from __future__ import annotations

from dataclasses import dataclass

from entitydesk.kernel.types import DEFAULT_REVEAL_STEP


@dataclass
class RevealWindow:
    step: int = DEFAULT_REVEAL_STEP
    count: int = 0
    total: int = -1

    def sync(self, total: int) -> int:
        """Reset to the first step if the filtered size changed."""
        if total != self.total:
            self.total = total
            self.count = min(self.step, total)
        return self.count

    def reveal_more(self) -> int:
        self.count = min(self.count + self.step, max(self.total, 0))
        return self.count

    @property
    def has_more(self) -> bool:
        return self.total > self.count


def count_label(count: int, page_size: int) -> str:
    """
    Human count of fetched records. A page that came back full may be
    truncated, so it reads "N+" rather than an exact number.
    """
    if page_size > 0 and count >= page_size:
        return f"{page_size}+"
    return str(count)
