from fastapi import APIRouter, Depends, status

from tubely.api.v1.dependencies import get_auth_service, get_current_user
from tubely.db.models.users import User
from tubely.features.authentication.schemas import AccessTokenOut, SignInIn, SignUpIn, UserOut
from tubely.features.authentication.services import AuthService

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

@router.post(
    "/sign-up",
    summary="Créer un compte",
    status_code=status.HTTP_201_CREATED,
    response_model=UserOut,
)
def sign_up(payload: SignUpIn, svc: AuthService = Depends(get_auth_service)):
    user = svc.sign_up(payload)
    return UserOut(id=user.id, username=user.username)

@router.post(
    "/sign-in",
    summary="Se connecter",
    response_model=AccessTokenOut,
)
def sign_in(payload: SignInIn, svc: AuthService = Depends(get_auth_service)):
    return svc.sign_in(payload)

@router.get("/me", summary="Utilisateur courant", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return UserOut(id=user.id, username=user.username)
