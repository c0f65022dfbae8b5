from fastapi import Depends, HTTPException, status

from jevah.auth.dependencies import get_current_user


def require_role(*roles: str):
    def wrapper(user: dict = Depends(get_current_user)):
        if user.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: insufficient role",
            )
        return user
    return wrapper


def is_admin(user: dict) -> bool:
    return user.get("role") == "admin"
