"""Progress Repository - Data Access Layer"""
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from decimal import Decimal
import logging

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from chemquest.errors import (
    ConcurrentModification,
    ReferralCodeTaken,
    StoreUnavailable,
    UserAlreadyExists,
)
from chemquest.schemas import UserProgressRecord

logger = logging.getLogger(__name__)

USER_RECORD = "USER"
REFERRAL_CODE_RECORD = "REFERRAL_CODE"

_CONFLICT_CODES = {"ConditionalCheckFailedException", "TransactionCanceledException"}


def referral_code_key(code: str) -> str:
    return f"REFERRAL_CODE#{code}"


def python_value(value: Any) -> Any:
    """Convert DynamoDB value to Python value"""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    elif isinstance(value, dict):
        return {k: python_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [python_value(item) for item in value]
    return value


def to_item(record: UserProgressRecord) -> Dict[str, Any]:
    """Record -> DynamoDB item (ISO timestamps, absent optionals omitted)"""
    item = record.model_dump(mode="json", exclude_none=True)
    item['recordType'] = USER_RECORD
    return item


def from_item(item: Dict[str, Any]) -> UserProgressRecord:
    data = {k: python_value(v) for k, v in item.items() if k != 'recordType'}
    return UserProgressRecord.model_validate(data)


def _is_conflict(error: ClientError) -> bool:
    return error.response['Error']['Code'] in _CONFLICT_CODES


class ProgressRepository:
    """
    Repository for user progress records in DynamoDB.

    Every write is version-checked (optimistic locking): a record is written
    only if the stored version still equals the version that was read.
    """

    def __init__(self, table):
        """
        Args:
            table: boto3 DynamoDB Table resource (progress table)
        """
        self.table = table
        self.client = table.meta.client

    # ========== READS ==========

    def get(self, user_id: str) -> Optional[UserProgressRecord]:
        """Get a user record, None if it does not exist"""
        try:
            response = self.table.get_item(Key={'userId': user_id}, ConsistentRead=True)
        except ClientError as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise StoreUnavailable("Could not read user record", userId=user_id) from e

        item = response.get('Item')
        if not item or item.get('recordType') != USER_RECORD:
            return None
        return from_item(item)

    def find_by_referral_code(self, code: str) -> Optional[UserProgressRecord]:
        """Resolve a normalized referral code to its owner"""
        try:
            response = self.table.get_item(Key={'userId': referral_code_key(code)}, ConsistentRead=True)
        except ClientError as e:
            logger.error(f"Error resolving referral code {code}: {e}")
            raise StoreUnavailable("Could not resolve referral code") from e

        reservation = response.get('Item')
        if not reservation:
            return None
        return self.get(reservation['ownerId'])

    def top_by_xp(self, limit: int) -> List[UserProgressRecord]:
        """Users ordered by totalXP descending"""
        records: List[UserProgressRecord] = []
        scan_kwargs = {'FilterExpression': Attr('recordType').eq(USER_RECORD)}
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                records.extend(from_item(item) for item in response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                scan_kwargs['ExclusiveStartKey'] = last_key
        except ClientError as e:
            logger.error(f"Error scanning leaderboard: {e}")
            raise StoreUnavailable("Could not read leaderboard") from e

        records.sort(key=lambda r: (-r.totalXP, r.createdAt))
        return records[:limit]

    # ========== WRITES ==========

    def create(self, record: UserProgressRecord) -> UserProgressRecord:
        """
        Create a user record and reserve its referral code in one transaction.

        Raises:
            UserAlreadyExists: userId already taken
            ReferralCodeTaken: referralCode already reserved by another user
        """
        stored = record.model_copy(update={'version': 1})
        transact_items = [
            {
                'Put': {
                    'TableName': self.table.name,
                    'Item': to_item(stored),
                    'ConditionExpression': 'attribute_not_exists(userId)',
                }
            },
            {
                'Put': {
                    'TableName': self.table.name,
                    'Item': {
                        'userId': referral_code_key(record.referralCode),
                        'recordType': REFERRAL_CODE_RECORD,
                        'ownerId': record.userId,
                    },
                    'ConditionExpression': 'attribute_not_exists(userId)',
                }
            },
        ]

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if not _is_conflict(e):
                logger.error(f"Error creating user {record.userId}: {e}")
                raise StoreUnavailable("Could not create user record", userId=record.userId) from e
            if self.get(record.userId) is not None:
                raise UserAlreadyExists(f"User {record.userId} already exists", userId=record.userId) from e
            raise ReferralCodeTaken("Referral code already reserved", referralCode=record.referralCode) from e

        logger.info(f"Created user {record.userId} with referral code {record.referralCode}")
        return stored

    def save(self, record: UserProgressRecord) -> UserProgressRecord:
        """
        Write a record read at ``record.version``.

        Returns:
            The stored record (version incremented)

        Raises:
            ConcurrentModification: record changed since it was read
        """
        stored = self._next_version(record)
        try:
            self.table.put_item(
                Item=to_item(stored),
                ConditionExpression='#v = :expected_version',
                ExpressionAttributeNames={'#v': 'version'},
                ExpressionAttributeValues={':expected_version': record.version},
            )
        except ClientError as e:
            if _is_conflict(e):
                logger.warning(f"Version mismatch for user {record.userId}: expected {record.version}")
                raise ConcurrentModification(
                    "Concurrent modification detected. Please retry.",
                    userId=record.userId,
                ) from e
            logger.error(f"Error saving user {record.userId}: {e}")
            raise StoreUnavailable("Could not save user record", userId=record.userId) from e

        return stored

    def save_referral(
        self,
        current_user: UserProgressRecord,
        referrer: UserProgressRecord
    ) -> tuple[UserProgressRecord, UserProgressRecord]:
        """
        Write both sides of a referral atomically (both commit or neither does).

        The redeeming user is additionally conditioned on referredBy being
        absent in the store, so a code can never be credited twice.

        Raises:
            ConcurrentModification: either record changed since it was read
        """
        stored_user = self._next_version(current_user)
        stored_referrer = self._next_version(referrer)

        transact_items = [
            {
                'Put': {
                    'TableName': self.table.name,
                    'Item': to_item(stored_user),
                    'ConditionExpression': '#v = :expected_version AND attribute_not_exists(referredBy)',
                    'ExpressionAttributeNames': {'#v': 'version'},
                    'ExpressionAttributeValues': {':expected_version': current_user.version},
                }
            },
            {
                'Put': {
                    'TableName': self.table.name,
                    'Item': to_item(stored_referrer),
                    'ConditionExpression': '#v = :expected_version',
                    'ExpressionAttributeNames': {'#v': 'version'},
                    'ExpressionAttributeValues': {':expected_version': referrer.version},
                }
            },
        ]

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if _is_conflict(e):
                logger.warning(
                    f"Referral transaction cancelled for {current_user.userId} -> {referrer.userId}"
                )
                raise ConcurrentModification(
                    "Concurrent modification detected. Please retry.",
                    userId=current_user.userId,
                ) from e
            logger.error(f"Error saving referral for {current_user.userId}: {e}")
            raise StoreUnavailable("Could not save referral") from e

        return stored_user, stored_referrer

    @staticmethod
    def _next_version(record: UserProgressRecord) -> UserProgressRecord:
        return record.model_copy(update={
            'version': record.version + 1,
            'updatedAt': datetime.now(timezone.utc),
        })
