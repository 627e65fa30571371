from __future__ import annotations

from dataclasses import dataclass, field

from core.models import SwimmerAggregate


@dataclass
class RosterState:
    """What the window last loaded, plus the current search text."""

    roster: list[SwimmerAggregate] = field(default_factory=list)
    search: str = ""
    loaded_at: str = ""
    sheet_swimmers: int = 0

    def replace(self, roster: list[SwimmerAggregate], loaded_at: str = "", sheet_swimmers: int = 0) -> None:
        self.roster = list(roster)
        self.loaded_at = loaded_at
        self.sheet_swimmers = sheet_swimmers

    def filtered(self) -> list[SwimmerAggregate]:
        query = self.search.strip().lower()
        if not query:
            return list(self.roster)
        return [
            s
            for s in self.roster
            if query in " ".join([s.site, s.group, s.name, s.gender, s.age]).lower()
        ]

    def summary(self, shown: int) -> str:
        text = f"{shown} swimmers"
        if self.sheet_swimmers:
            text += f" of {self.sheet_swimmers} in sheet"
        if self.loaded_at:
            text += f" · loaded {self.loaded_at}"
        return text
