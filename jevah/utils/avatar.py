# jevah/utils/avatar.py
from typing import Optional
from urllib.parse import quote


def generate_default_avatar_url(first_name: Optional[str], last_name: Optional[str], email: Optional[str] = None) -> str:
    name = f"{first_name or ''} {last_name or ''}".strip()
    if not name and email:
        name = email.split("@")[0]
    return f"https://ui-avatars.com/api/?name={quote(name or 'Jevah User')}&background=0D8ABC&color=fff&size=128"
