from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from mentorhub.database import get_db
from mentorhub import models
from mentorhub.crud import user as user_crud
from mentorhub.models.user import ROLE_MENTEE, ROLE_MENTOR
from mentorhub.schemas.auth import LoginRequest, RegisterRequest, Token
from mentorhub.schemas.user import User as UserSchema
from mentorhub.utils.security import authenticate_user, create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])

SIGNUP_ROLES = {ROLE_MENTEE, ROLE_MENTOR}


# ===== REGISTER ENDPOINT =====

@router.post("/register", status_code=201)
def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a mentee or a mentor. Mentors need admin approval before matching."""
    requested_role = (user_data.role or ROLE_MENTEE).strip().lower()
    if requested_role not in SIGNUP_ROLES:
        raise HTTPException(
            status_code=400,
            detail="Role must be one of: mentee, mentor"
        )

    normalized_email = user_data.email.strip().lower()
    if user_crud.get_user_by_email(db, normalized_email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = user_crud.create_user(
        db,
        name=user_data.name,
        email=normalized_email,
        password=user_data.password,
        role=requested_role,
    )
    db.commit()
    return {
        "message": "Registration successful",
        "user_id": user.id,
        "role": user.role,
        "approved": user.approved,
    }


# ===== LOGIN ENDPOINT =====

@router.post("/login", response_model=Token)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Verify credentials and return access token"""
    user = authenticate_user(db, credentials.email.strip().lower(), credentials.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    access_token = create_access_token(data={"sub": user.email, "role": user.role})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": user.role
    }


@router.get("/me", response_model=UserSchema)
def read_me(current_user: models.User = Depends(get_current_user)):
    return current_user
