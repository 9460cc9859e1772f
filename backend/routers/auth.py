from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.user import User
from backend.routers.deps import bearer_token, get_current_user
from backend.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from backend.services.auth import authenticate, create_session, register_user, revoke_session

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        professional_title=user.professional_title,
    )


@router.post("/register", response_model=AuthResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, payload.email, payload.password, payload.full_name, payload.professional_title)
    if not user:
        raise HTTPException(status_code=400, detail="Email already registered")

    session = create_session(db, user.id)
    return AuthResponse(token=session.id, user=_user_response(user))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    session = create_session(db, user.id)
    return AuthResponse(token=session.id, user=_user_response(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return _user_response(current_user)


@router.post("/logout")
def logout(token: str = Depends(bearer_token), db: Session = Depends(get_db)):
    revoke_session(db, token)
    return {"statusCode": 200, "message": "Logged out", "data": None}
