"""
Shop Schemas
Catalog items and purchase payloads
"""
from typing import List, Optional
from pydantic import BaseModel, Field


VALID_ITEM_TYPES = ["avatar", "theme", "powerup"]
VALID_RARITIES = ["common", "rare", "epic", "legendary"]


class ShopItem(BaseModel):
    """Catalog entry"""
    id: str
    type: str = Field(..., description="avatar, theme or powerup")
    name: str
    description: str
    price: int = Field(..., ge=0, description="Price in coins")
    icon: str
    rarity: str = "common"
    effect: Optional[str] = Field(None, description="Gameplay effect, power-ups only")


class ShopItemsResponse(BaseModel):
    items: List[ShopItem]
    total: int


class PurchaseRequest(BaseModel):
    itemId: str = Field(..., min_length=1)


class PurchaseResponse(BaseModel):
    success: bool = True
    message: str
    item: ShopItem
    remainingCoins: int
    ownedItems: List[str]
