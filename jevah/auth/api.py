import logging

from fastapi import APIRouter, Depends, Request, status

from jevah.auth import schemas
from jevah.auth.dependencies import get_current_user, oauth2_scheme
from jevah.auth.services import AuthService
from jevah.db.mongo import get_database
from jevah.utils.rate_limit import auth_limit, email_limit, sensitive_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@auth_limit
async def register(request: Request, user: schemas.UserRegister, db=Depends(get_database)):
    created = await AuthService(db).register(user)
    return {
        "success": True,
        "message": "User registered successfully. Please check your email for the verification code.",
        "user": created,
    }


@router.post("/artist/register", status_code=status.HTTP_201_CREATED)
@auth_limit
async def register_artist(request: Request, artist: schemas.ArtistRegister, db=Depends(get_database)):
    created = await AuthService(db).register_artist(artist)
    return {
        "success": True,
        "message": "Artist registered successfully. Please check your email for the verification code.",
        "user": created,
    }


@router.post("/verify-email")
@auth_limit
async def verify_email(request: Request, data: schemas.VerifyEmailRequest, db=Depends(get_database)):
    user = await AuthService(db).verify_email(data.email, data.code)
    return {"success": True, "message": "Email verified successfully", "user": user}


@router.post("/resend-verification-email")
@email_limit
async def resend_verification(request: Request, data: schemas.EmailRequest, db=Depends(get_database)):
    await AuthService(db).resend_verification(data.email)
    return {"success": True, "message": "Verification email resent"}


@router.post("/login")
@auth_limit
async def login(request: Request, data: schemas.UserLogin, db=Depends(get_database)):
    result = await AuthService(db).login(data.email, data.password)
    return {
        "success": True,
        "message": "Login successful",
        "token": result["token"],
        "access_token": result["token"],
        "token_type": "bearer",
        "user": result["user"],
    }


@router.post("/forgot-password")
@email_limit
async def forgot_password(request: Request, data: schemas.EmailRequest, db=Depends(get_database)):
    await AuthService(db).forgot_password(data.email)
    return {"success": True, "message": "Password reset instructions sent to your email"}


@router.post("/reset-password")
@sensitive_limit
async def reset_password(request: Request, data: schemas.ResetPasswordRequest, db=Depends(get_database)):
    await AuthService(db).reset_password(data.email, data.token, data.newPassword)
    return {"success": True, "message": "Password reset successfully"}


@router.post("/logout", response_model=schemas.LogoutResponse)
async def logout(
    token: str = Depends(oauth2_scheme),
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    await AuthService(db).logout(token, current_user["_id"])
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def get_me(current_user: dict = Depends(get_current_user), db=Depends(get_database)):
    return {"success": True, "user": await AuthService(db).get_me(current_user)}


@router.post("/complete-profile")
async def complete_profile(
    data: schemas.CompleteProfileRequest,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_database),
):
    user = await AuthService(db).complete_profile(current_user, data)
    return {"success": True, "message": "Profile completed", "user": user}
