"""Static reference table of trackable substances."""

from __future__ import annotations

from dataclasses import dataclass

OTHER_ID = "other"


@dataclass(frozen=True)
class SubstanceReference:
    id: str
    display_name: str
    half_life_hours: str  # informational range, e.g. "20-100"
    potency_equivalence: float  # 1 unit of this = N mg diazepam; not used in totals
    unit: str
    color: str

    @property
    def short_name(self) -> str:
        """Display name without the parenthetical brand, e.g. 'Diazepam'."""
        return self.display_name.split("(")[0].strip()

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.display_name,
            "halfLifeHours": self.half_life_hours,
            "diazepamEquivalence": self.potency_equivalence,
            "unit": self.unit,
            "color": self.color,
        }


BENZO_DATA: tuple[SubstanceReference, ...] = (
    SubstanceReference("alprazolam", "Alprazolam (Xanax)", "11-12", 20, "mg", "#ff00ff"),
    SubstanceReference("clonazepam", "Clonazepam (Klonopin)", "18-50", 20, "mg", "#00ffff"),
    SubstanceReference("diazepam", "Diazepam (Valium)", "20-100", 1, "mg", "#ffff00"),
    SubstanceReference("lorazepam", "Lorazepam (Ativan)", "10-20", 10, "mg", "#00ff00"),
    SubstanceReference("oxazepam", "Oxazepam (Serax)", "4-15", 0.5, "mg", "#3b82f6"),
    SubstanceReference("chlordiazepoxide", "Chlordiazepoxide (Librium)", "5-30", 0.4, "mg", "#f97316"),
    SubstanceReference("temazepam", "Temazepam (Restoril)", "8-22", 0.5, "mg", "#ec4899"),
    SubstanceReference(OTHER_ID, "Other", "N/A", 0, "mg", "#94a3b8"),
)

_BY_ID = {s.id: s for s in BENZO_DATA}

DEFAULT_UNIT = "mg"
FALLBACK_COLOR = "#cbd5e1"


def get_substance(substance_id: str) -> SubstanceReference | None:
    return _BY_ID.get(substance_id)


def label_for(substance_id: str, custom_name: str | None = None) -> str:
    """
    Human label for a substance id.
    Unknown ids (e.g. after a catalog change) fall back to the raw id.
    """
    if substance_id == OTHER_ID and custom_name:
        return custom_name
    ref = get_substance(substance_id)
    return ref.short_name if ref else substance_id


def unit_for(substance_id: str) -> str:
    ref = get_substance(substance_id)
    return ref.unit if ref else DEFAULT_UNIT
