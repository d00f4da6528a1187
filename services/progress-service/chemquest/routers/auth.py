"""
Authentication endpoints for Progress Service

Handles signup and login using AWS Cognito
"""
from botocore.exceptions import ClientError
from fastapi import APIRouter, HTTPException, Depends, status
import logging

from chemquest.config import get_settings
from chemquest.dependencies import get_cognito_client, get_progress_service
from chemquest.errors import ProgressError
from chemquest.middleware.auth import get_current_user
from chemquest.schemas import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    SignUpRequest,
    SignUpResponse,
)
from chemquest.services.progress_service import ProgressService

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignUpRequest,
    cognito_client=Depends(get_cognito_client),
    service: ProgressService = Depends(get_progress_service)
):
    """
    Register a new user in Cognito and create their progress record

    **Flow:**
    1. Create user in Cognito with email/password
    2. Create the progress record with the Cognito sub as userId
       (zeroed counters, Bronze rank, fresh referral code)
    """
    try:
        response = cognito_client.sign_up(
            ClientId=settings.COGNITO_CLIENT_ID,
            Username=payload.email,
            Password=payload.password,
            UserAttributes=[
                {'Name': 'email', 'Value': payload.email},
                {'Name': 'name', 'Value': payload.displayName},
                {'Name': 'preferred_username', 'Value': payload.username},
            ]
        )
    except ClientError as e:
        error_code = e.response['Error']['Code']
        error_message = e.response['Error']['Message']
        logger.error(f"Cognito error during signup: {error_code} - {error_message}")

        if error_code == 'UsernameExistsException':
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")
        elif error_code in ('InvalidPasswordException', 'InvalidParameterException'):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_message)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Registration failed")

    cognito_sub = response['UserSub']
    logger.info(f"Created Cognito user: {cognito_sub}")

    try:
        record = service.register_user(
            user_id=cognito_sub,
            username=payload.username,
            display_name=payload.displayName,
            email=payload.email,
        )
    except ProgressError as e:
        logger.error(f"Progress record creation failed for {cognito_sub}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

    return SignUpResponse(
        message="User registered successfully. Please check your email for verification code.",
        userId=record.userId,
        username=record.username,
        displayName=record.displayName,
        referralCode=record.referralCode,
        confirmationRequired=not response.get('UserConfirmed', False)
    )


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, cognito_client=Depends(get_cognito_client)):
    """
    Authenticate user and get JWT tokens

    **Usage:**
    ```
    Authorization: Bearer <accessToken>
    ```
    """
    try:
        response = cognito_client.initiate_auth(
            ClientId=settings.COGNITO_CLIENT_ID,
            AuthFlow='USER_PASSWORD_AUTH',
            AuthParameters={
                'USERNAME': payload.email,
                'PASSWORD': payload.password,
            }
        )
    except ClientError as e:
        error_code = e.response['Error']['Code']
        logger.warning(f"Login failed: {error_code}")

        if error_code in ('NotAuthorizedException', 'UserNotFoundException'):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
        elif error_code == 'UserNotConfirmedException':
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Email not verified. Please check your email for verification code."
            )
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Login failed")

    auth_result = response['AuthenticationResult']
    return LoginResponse(
        accessToken=auth_result['AccessToken'],
        idToken=auth_result['IdToken'],
        refreshToken=auth_result.get('RefreshToken'),
        expiresIn=auth_result['ExpiresIn'],
        tokenType='Bearer',
    )


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
    return user
