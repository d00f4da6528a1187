import boto3
from botocore.exceptions import ClientError
from functools import lru_cache
from typing import Optional
import logging

from chemquest.config import Settings, get_settings

logger = logging.getLogger(__name__)


class DynamoDBClient:
    """DynamoDB client with lazy initialization"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._dynamodb = None
        self._progress_table = None

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource"""
        if self._dynamodb is None:
            kwargs = {
                'region_name': self.settings.AWS_REGION,
            }

            # Only use endpoint_url for LocalStack
            if self.settings.DYNAMODB_ENDPOINT:
                kwargs['endpoint_url'] = self.settings.DYNAMODB_ENDPOINT

            # Only pass explicit credentials if we're in LocalStack mode (endpoint set)
            # In ECS, boto3 automatically uses the IAM role
            if self.settings.DYNAMODB_ENDPOINT and self.settings.AWS_ACCESS_KEY_ID:
                kwargs['aws_access_key_id'] = self.settings.AWS_ACCESS_KEY_ID
                kwargs['aws_secret_access_key'] = self.settings.AWS_SECRET_ACCESS_KEY
                logger.info("Using explicit AWS credentials (LocalStack mode)")
            else:
                logger.info("Using IAM role credentials (AWS/ECS mode)")

            self._dynamodb = boto3.resource('dynamodb', **kwargs)
        return self._dynamodb

    @property
    def progress_table(self):
        if self._progress_table is None:
            self._progress_table = self.dynamodb.Table(self.settings.DYNAMODB_PROGRESS_TABLE)
        return self._progress_table

    def create_tables_if_not_exist(self) -> None:
        """Create the progress table if missing (local development and tests)"""
        create_progress_table(self.dynamodb, self.settings.DYNAMODB_PROGRESS_TABLE)


def create_progress_table(dynamodb, table_name: str):
    """
    Create the user progress table

    Single-table layout keyed by userId:
    - user items:              userId = <user id>,               recordType = USER
    - referral code reservations: userId = REFERRAL_CODE#<code>, recordType = REFERRAL_CODE
    """
    client = dynamodb.meta.client
    try:
        client.describe_table(TableName=table_name)
        logger.debug(f"Table {table_name} already exists")
        return dynamodb.Table(table_name)
    except ClientError as e:
        if e.response['Error']['Code'] != 'ResourceNotFoundException':
            raise

    table = dynamodb.create_table(
        TableName=table_name,
        KeySchema=[
            {'AttributeName': 'userId', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'userId', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    table.wait_until_exists()
    logger.info(f"Created table {table_name}")
    return table


@lru_cache()
def get_dynamodb_client() -> DynamoDBClient:
    """Process-scoped DynamoDB client"""
    return DynamoDBClient(get_settings())
