from fastapi import HTTPException, status
from jose import JWTError

from tubely.db.models.users import User
from tubely.db.repositories.users import UserRepository
from tubely.security.password import verify_password, hash_password
from tubely.security.tokens import JWTSettings, create_access_token, decode_token
from tubely.features.authentication.schemas import SignUpIn, SignInIn, AccessTokenOut


class AuthService:
    """
    Service d'authentification : orchestre le repository + tokens.
    Ne contient pas d'accès SQL direct et lève des HTTPException propres.
    """

    def __init__(self, *, user_repo: UserRepository, jwt_settings: JWTSettings):
        self.user_repo = user_repo
        self.jwt = jwt_settings

    # ---------- Sign up ----------
    def sign_up(self, payload: SignUpIn) -> User:
        if self.user_repo.get_by_username(payload.username):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )
        return self.user_repo.create(
            username=payload.username,
            hashed_password=hash_password(payload.password),
        )

    # ---------- Sign in ----------
    def sign_in(self, payload: SignInIn) -> AccessTokenOut:
        user = self.user_repo.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )

        access = create_access_token(user_id=user.id, username=user.username, settings=self.jwt)
        return AccessTokenOut(
            access_token=access,
            expires_in=int(self.jwt.access_ttl.total_seconds()),
        )

    # ---------- Current user depuis access token ----------
    def get_current_user(self, *, access_token: str) -> User:
        try:
            decoded = decode_token(access_token, self.jwt)
        except JWTError as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Couldn't validate JWT") from e

        if decoded.get("typ") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

        try:
            user_id = int(decoded["sub"])
        except (KeyError, ValueError) as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Couldn't validate JWT") from e

        user = self.user_repo.get(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
        return user
