"""
Shop purchase rules
"""
import logging

from chemquest.errors import AlreadyOwned, InsufficientFunds
from chemquest.schemas import UserProgressRecord
from chemquest.schemas_shop import ShopItem

logger = logging.getLogger(__name__)


def apply_purchase(record: UserProgressRecord, item: ShopItem) -> UserProgressRecord:
    """
    Debit the item price and add the item to ownedItems

    Raises:
        AlreadyOwned: item already in ownedItems
        InsufficientFunds: totalCoins < price (reports required/current/shortfall)
    """
    if item.id in record.ownedItems:
        raise AlreadyOwned("Item already owned", itemId=item.id)

    if record.totalCoins < item.price:
        logger.warning(
            f"User {record.userId} cannot afford {item.id}: {record.totalCoins}/{item.price} coins"
        )
        raise InsufficientFunds(
            "Insufficient funds",
            required=item.price,
            current=record.totalCoins,
            itemId=item.id,
        )

    updated = record.model_copy(update={
        'totalCoins': record.totalCoins - item.price,
        'ownedItems': [*record.ownedItems, item.id],
    })

    logger.info(f"User {record.userId} purchased {item.id} for {item.price} coins")
    return updated
