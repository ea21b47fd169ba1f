from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple


@dataclass(frozen=True)
class FinishOption:
    id: str
    name: str
    icon: str = ""


@dataclass(frozen=True)
class MaterialOption:
    """Sticker material; price_modifier multiplies the base price"""
    id: str
    name: str
    price_modifier: float
    subtitle: str = ""
    description: str = ""
    icon: str = ""
    recommended: bool = False
    durability: str = "outdoor"
    finish: str = ""
    specialty: bool = False
    warning: Optional[str] = None
    finish_options: Tuple[FinishOption, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "subtitle": self.subtitle,
            "description": self.description,
            "priceModifier": self.price_modifier,
            "icon": self.icon,
            "recommended": self.recommended,
            "durability": self.durability,
            "finish": self.finish,
            "specialty": self.specialty,
        }
        if self.warning:
            data["warning"] = self.warning
        if self.finish_options:
            data["finishOptions"] = [
                {"id": f.id, "name": f.name, "icon": f.icon} for f in self.finish_options
            ]
        return data


@dataclass(frozen=True)
class CuttingOption:
    """Cutting style; price_cents is a flat per-sticker surcharge"""
    id: str
    name: str
    price_cents: int
    description: str = ""
    icon: str = ""
    recommended: bool = False
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "priceCents": self.price_cents,
            "icon": self.icon,
            "recommended": self.recommended,
            "details": self.details,
        }
