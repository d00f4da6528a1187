"""
Shop item catalog

Static definitions: avatars (character cosmetics), themes (UI color
schemes) and power-ups (gameplay advantages).
"""
from typing import Dict, List, Optional

from chemquest.schemas_shop import ShopItem


AVATARS: List[ShopItem] = [
    ShopItem(id="avatar-alchemist", type="avatar", name="The Alchemist",
             description="Master of transmutation. Glows with ancient knowledge.",
             price=500, icon="⚗️", rarity="rare"),
    ShopItem(id="avatar-lab-tech", type="avatar", name="Lab Technician",
             description="Precision and safety first. The unsung hero of science.",
             price=300, icon="🥽", rarity="common"),
    ShopItem(id="avatar-quantum", type="avatar", name="Quantum Master",
             description="Exists in multiple states simultaneously.",
             price=1000, icon="⚛️", rarity="epic"),
    ShopItem(id="avatar-mad-scientist", type="avatar", name="Mad Scientist",
             description="Unconventional but brilliant.",
             price=750, icon="🧪", rarity="rare"),
    ShopItem(id="avatar-cosmic", type="avatar", name="Cosmic Chemist",
             description="Studies the chemistry of stars.",
             price=1500, icon="🌌", rarity="legendary"),
    ShopItem(id="avatar-toxic", type="avatar", name="Toxic Handler",
             description="Specializes in hazardous materials. Handle with care!",
             price=600, icon="☢️", rarity="rare"),
]

THEMES: List[ShopItem] = [
    ShopItem(id="theme-neon", type="theme", name="Neon Lab",
             description="High-energy cyberpunk aesthetic with glowing accents.",
             price=800, icon="💜", rarity="epic"),
    ShopItem(id="theme-space", type="theme", name="Deep Space",
             description="Dark cosmic theme with stellar purples and blues.",
             price=600, icon="🌌", rarity="rare"),
    ShopItem(id="theme-vintage", type="theme", name="Vintage Parchment",
             description="Old-school chemistry with aged paper and sepia tones.",
             price=400, icon="📜", rarity="common"),
    ShopItem(id="theme-forest", type="theme", name="Bio Lab",
             description="Organic chemistry theme with natural greens.",
             price=500, icon="🌿", rarity="rare"),
    ShopItem(id="theme-molten", type="theme", name="Molten Core",
             description="Thermodynamics-inspired with fiery reds and oranges.",
             price=700, icon="🔥", rarity="epic"),
    ShopItem(id="theme-crystal", type="theme", name="Crystal Lattice",
             description="Icy blue crystalline structure theme.",
             price=900, icon="💎", rarity="epic"),
]

POWERUPS: List[ShopItem] = [
    ShopItem(id="powerup-time", type="powerup", name="Time Dilator",
             description="Adds +10 seconds to any quiz timer.",
             price=150, icon="⏰", rarity="common", effect="+10s timer"),
    ShopItem(id="powerup-xp", type="powerup", name="Double XP Boost",
             description="Double XP for your next 5 games.",
             price=300, icon="✨", rarity="rare", effect="2x XP (5 games)"),
    ShopItem(id="powerup-streak", type="powerup", name="Streak Shield",
             description="Protects your streak from one wrong answer.",
             price=200, icon="🛡️", rarity="rare", effect="Streak protection"),
    ShopItem(id="powerup-hint", type="powerup", name="Atomic Insight",
             description="Reveals one wrong answer.",
             price=100, icon="💡", rarity="common", effect="50/50 hint"),
    ShopItem(id="powerup-coins", type="powerup", name="Coin Multiplier",
             description="Earn 3x coins on your next game.",
             price=250, icon="🪙", rarity="rare", effect="3x Coins (1 game)"),
    ShopItem(id="powerup-resurrection", type="powerup", name="Phoenix Down",
             description="Continue a failed boss battle once.",
             price=500, icon="🔥", rarity="epic", effect="Boss retry"),
]

ALL_ITEMS: List[ShopItem] = [*AVATARS, *THEMES, *POWERUPS]


class ShopCatalog:
    """Read-only lookup over a list of shop items"""

    def __init__(self, items: Optional[List[ShopItem]] = None):
        self._items: Dict[str, ShopItem] = {item.id: item for item in (items if items is not None else ALL_ITEMS)}

    def get_item_by_id(self, item_id: str) -> Optional[ShopItem]:
        return self._items.get(item_id)

    def list_items(self, item_type: Optional[str] = None) -> List[ShopItem]:
        items = list(self._items.values())
        if item_type:
            items = [item for item in items if item.type == item_type]
        return items
