"""
Dependency injection for routers

Tests override these with ``app.dependency_overrides``.
"""
from functools import lru_cache

import boto3
from fastapi import Depends

from chemquest.config import get_settings
from chemquest.core.db import get_dynamodb_client
from chemquest.services.progress_repository import ProgressRepository
from chemquest.services.progress_service import ProgressService
from chemquest.shop_catalog import ShopCatalog


def get_progress_repository() -> ProgressRepository:
    """Repository bound to the configured progress table"""
    return ProgressRepository(get_dynamodb_client().progress_table)


@lru_cache()
def get_shop_catalog() -> ShopCatalog:
    return ShopCatalog()


def get_progress_service(
    repository: ProgressRepository = Depends(get_progress_repository),
    catalog: ShopCatalog = Depends(get_shop_catalog),
) -> ProgressService:
    return ProgressService(repository, catalog)


@lru_cache()
def get_cognito_client():
    """Cognito Identity Provider client (signup/login)"""
    settings = get_settings()
    return boto3.client('cognito-idp', region_name=settings.COGNITO_REGION)
