"""
Shop Router

- GET  /api/v1/shop/items?type=avatar
- POST /api/v1/shop/purchase
"""
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
import logging

from chemquest.dependencies import get_progress_service, get_shop_catalog
from chemquest.errors import ProgressError
from chemquest.middleware.auth import get_current_user
from chemquest.schemas import CurrentUser
from chemquest.schemas_shop import PurchaseRequest, PurchaseResponse, ShopItemsResponse, VALID_ITEM_TYPES
from chemquest.services.progress_service import ProgressService
from chemquest.shop_catalog import ShopCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shop", tags=["Shop"])


@router.get("/items", response_model=ShopItemsResponse)
async def list_shop_items(
    type: Optional[str] = Query(None, description="avatar, theme or powerup"),
    catalog: ShopCatalog = Depends(get_shop_catalog)
):
    if type is not None and type not in VALID_ITEM_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid item type. Valid types: {', '.join(VALID_ITEM_TYPES)}"
        )
    items = catalog.list_items(type)
    return ShopItemsResponse(items=items, total=len(items))


@router.post("/purchase", response_model=PurchaseResponse)
async def purchase_item(
    request: PurchaseRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    try:
        record, item = service.purchase(user.id, request.itemId)
        return PurchaseResponse(
            message=f"Successfully purchased {item.name}!",
            item=item,
            remainingCoins=record.totalCoins,
            ownedItems=record.ownedItems,
        )
    except ProgressError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())
    except Exception as e:
        logger.error(f"Error purchasing {request.itemId} for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Purchase failed")
