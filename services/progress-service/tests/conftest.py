"""
Pytest configuration for progress-service tests

DynamoDB is mocked with moto; every test gets a fresh progress table.
"""
import pytest
import boto3
from moto import mock_aws
from datetime import datetime, timezone

from chemquest.config import get_settings
from chemquest.core.db import create_progress_table
from chemquest.schemas import UserProgressRecord
from chemquest.services.progress_repository import ProgressRepository
from chemquest.services.progress_service import ProgressService
from chemquest.shop_catalog import ShopCatalog

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def progress_table(aws_credentials):
    """Create the mock progress table"""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_progress_table(dynamodb, get_settings().DYNAMODB_PROGRESS_TABLE)


@pytest.fixture
def repository(progress_table):
    return ProgressRepository(progress_table)


@pytest.fixture
def service(repository):
    return ProgressService(repository, ShopCatalog(), clock=lambda: NOW)


@pytest.fixture
def make_record():
    """Build a record without storing it"""
    def _make(user_id="user-1", **overrides):
        data = {
            "userId": user_id,
            "username": user_id.replace("-", "_"),
            "displayName": user_id.title(),
            "lastLogin": NOW,
            "referralCode": "ABC234",
            "createdAt": NOW,
            "updatedAt": NOW,
        }
        data.update(overrides)
        return UserProgressRecord(**data)
    return _make


@pytest.fixture
def stored_user(repository, make_record):
    """Create a record in the mock table and return the stored version"""
    def _store(user_id="user-1", referral_code="ABC234", **overrides):
        return repository.create(make_record(user_id, referralCode=referral_code, **overrides))
    return _store
