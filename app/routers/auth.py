from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.dependencies import get_auth_service
from app.schemas import SigninRequest, SignupRequest, TokenResponse, UserResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def signup(data: SignupRequest, service: Annotated[AuthService, Depends(get_auth_service)]):
    return await service.signup(data.email, data.password, data.name)


@router.post("/signin", response_model=TokenResponse)
async def signin(data: SigninRequest, service: Annotated[AuthService, Depends(get_auth_service)]):
    return TokenResponse(access_token=await service.signin(data.email, data.password))
