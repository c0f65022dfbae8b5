import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from jevah.audit.services import AuditService
from jevah.auth import jwt_handler, password
from jevah.auth.schemas import ArtistRegister, CompleteProfileRequest, UserRegister
from jevah.db.mongo import BLACKLISTED_TOKENS, USERS
from jevah.errors import AuthenticationError, BadRequestError, ConflictError, NotFoundError
from jevah.utils import email as mailer
from jevah.utils.avatar import generate_default_avatar_url
from jevah.utils.code import generate_reset_token, generate_verification_code
from jevah.utils.mongodb_utils import public_user

logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = {"learner", "parent", "educator", "content_creator", "vendor", "church_admin"}
DEFAULT_ROLE = "learner"
VERIFICATION_CODE_TTL = timedelta(minutes=10)
RESET_TOKEN_TTL = timedelta(hours=1)
KID_AGE_LIMIT = 13


def new_user_document(email: str, hashed_password: str, first_name, last_name, role: str, avatar=None) -> Dict[str, Any]:
    now = datetime.utcnow()
    return {
        "email": email.lower(),
        "password": hashed_password,
        "provider": "email",
        "firstName": first_name,
        "lastName": last_name,
        "avatar": avatar or generate_default_avatar_url(first_name, last_name, email),
        "role": role,
        "isEmailVerified": False,
        "isProfileComplete": False,
        "hasConsentedToPrivacyPolicy": False,
        "isKid": False,
        "section": "adults",
        "interests": [],
        "following": [],
        "followers": [],
        "library": [],
        "offlineDownloads": [],
        "viewedMedia": [],
        "userActivities": [],
        "emailNotifications": {
            "newFollowers": True,
            "mediaLikes": True,
            "mediaShares": True,
            "merchPurchases": True,
        },
        "subscriptionTier": "free",
        "subscriptionStatus": "inactive",
        "isVerifiedArtist": False,
        "isVerifiedCreator": False,
        "isVerifiedVendor": False,
        "isVerifiedChurch": False,
        "failedLoginAttempts": 0,
        "createdAt": now,
        "updatedAt": now,
    }


class AuthService:
    def __init__(self, db):
        self.db = db
        self.audit = AuditService(db)

    async def _insert_user(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if await self.db[USERS].find_one({"email": doc["email"]}):
            raise ConflictError("Email address is already registered")
        try:
            result = await self.db[USERS].insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Email address is already registered")
        doc["_id"] = result.inserted_id
        return doc

    async def register(self, data: UserRegister) -> Dict[str, Any]:
        role = data.role or DEFAULT_ROLE
        if role == "artist":
            raise BadRequestError("Artists must register through the artist registration endpoint")
        if role not in SELF_SERVICE_ROLES:
            role = DEFAULT_ROLE

        doc = new_user_document(
            data.email, password.hash_password(data.password), data.firstName, data.lastName, role, data.avatar
        )
        code = generate_verification_code()
        doc["verificationCode"] = code
        doc["verificationCodeExpires"] = datetime.utcnow() + VERIFICATION_CODE_TTL

        user = await self._insert_user(doc)
        logger.info(f"User registered: id={user['_id']} email={user['email']} role={role}")
        await mailer.send_verification_email(user["email"], user.get("firstName"), code)
        return public_user(user)

    async def register_artist(self, data: ArtistRegister) -> Dict[str, Any]:
        doc = new_user_document(
            data.email, password.hash_password(data.password), data.firstName, data.lastName, "artist"
        )
        doc["artistProfile"] = {
            "artistName": data.artistName,
            "genre": data.genre,
            "bio": data.bio,
            "recordLabel": data.recordLabel,
            "yearsActive": data.yearsActive,
            "followerCount": 0,
            "followingCount": 0,
            "isVerifiedArtist": False,
            "verificationDocuments": [],
        }
        code = generate_verification_code()
        doc["verificationCode"] = code
        doc["verificationCodeExpires"] = datetime.utcnow() + VERIFICATION_CODE_TTL

        user = await self._insert_user(doc)
        logger.info(f"Artist registered: id={user['_id']} artistName={data.artistName}")
        await mailer.send_verification_email(user["email"], data.artistName, code)
        return public_user(user)

    async def verify_email(self, email: str, code: str) -> Dict[str, Any]:
        user = await self.db[USERS].find_one({"email": email.lower(), "verificationCode": code})
        if not user:
            raise BadRequestError("Invalid email or code")
        expires = user.get("verificationCodeExpires")
        if not expires or expires < datetime.utcnow():
            raise BadRequestError("Verification code expired")

        await self.db[USERS].update_one(
            {"_id": user["_id"]},
            {
                "$set": {"isEmailVerified": True, "updatedAt": datetime.utcnow()},
                "$unset": {"verificationCode": "", "verificationCodeExpires": ""},
            },
        )
        user["isEmailVerified"] = True
        logger.info(f"Email verified: {user['email']}")
        await mailer.send_welcome_email(user["email"], user.get("firstName"))
        return public_user(user)

    async def resend_verification(self, email: str) -> None:
        user = await self.db[USERS].find_one({"email": email.lower()})
        if not user:
            raise NotFoundError("User not found")
        if user.get("isEmailVerified"):
            raise BadRequestError("Email already verified")

        code = generate_verification_code()
        await self.db[USERS].update_one(
            {"_id": user["_id"]},
            {"$set": {"verificationCode": code, "verificationCodeExpires": datetime.utcnow() + VERIFICATION_CODE_TTL}},
        )
        await mailer.send_verification_email(user["email"], user.get("firstName"), code)

    async def login(self, email: str, plain_password: str) -> Dict[str, Any]:
        user = await self.db[USERS].find_one({"email": email.lower()})
        if not user or not password.verify_password(plain_password, user.get("password")):
            if user:
                await self.db[USERS].update_one({"_id": user["_id"]}, {"$inc": {"failedLoginAttempts": 1}})
            raise AuthenticationError("Invalid email or password")
        if not user.get("isEmailVerified"):
            raise AuthenticationError("Please verify your email before logging in")

        now = datetime.utcnow()
        await self.db[USERS].update_one(
            {"_id": user["_id"]},
            {"$set": {"lastLoginAt": now, "failedLoginAttempts": 0}},
        )
        await self.audit.log_activity(user["_id"], "login", "auth")
        token = jwt_handler.create_access_token({"user_id": str(user["_id"]), "role": user.get("role")})
        user["lastLoginAt"] = now
        logger.info(f"User logged in: id={user['_id']}")
        return {"token": token, "user": public_user(user)}

    async def forgot_password(self, email: str) -> None:
        user = await self.db[USERS].find_one({"email": email.lower()})
        if not user:
            raise NotFoundError("User not found")
        token = generate_reset_token()
        await self.db[USERS].update_one(
            {"_id": user["_id"]},
            {"$set": {"resetPasswordToken": token, "resetPasswordExpires": datetime.utcnow() + RESET_TOKEN_TTL}},
        )
        await mailer.send_reset_password_email(user["email"], user.get("firstName"), token)

    async def reset_password(self, email: str, token: str, new_password: str) -> None:
        user = await self.db[USERS].find_one({
            "email": email.lower(),
            "resetPasswordToken": token,
            "resetPasswordExpires": {"$gt": datetime.utcnow()},
        })
        if not user:
            raise BadRequestError("Invalid or expired reset token")
        await self.db[USERS].update_one(
            {"_id": user["_id"]},
            {
                "$set": {"password": password.hash_password(new_password), "updatedAt": datetime.utcnow()},
                "$unset": {"resetPasswordToken": "", "resetPasswordExpires": ""},
            },
        )
        await self.audit.log_activity(user["_id"], "password_reset", "auth")
        logger.info(f"Password reset: id={user['_id']}")

    async def logout(self, token: str, user_id=None) -> None:
        if await self.db[BLACKLISTED_TOKENS].find_one({"token": token}):
            raise BadRequestError("Token already invalidated")
        expires_at = jwt_handler.token_expiry(token) or datetime.utcnow() + timedelta(days=7)
        try:
            await self.db[BLACKLISTED_TOKENS].insert_one({"token": token, "expiresAt": expires_at, "createdAt": datetime.utcnow()})
        except DuplicateKeyError:
            raise BadRequestError("Token already invalidated")
        if user_id:
            await self.audit.log_activity(user_id, "logout", "auth")

    async def complete_profile(self, user: Dict[str, Any], data: CompleteProfileRequest) -> Dict[str, Any]:
        if not data.hasConsentedToPrivacyPolicy:
            raise BadRequestError("You must accept the privacy policy")

        updates: Dict[str, Any] = {
            "hasConsentedToPrivacyPolicy": True,
            "interests": data.interests,
            "isProfileComplete": True,
            "updatedAt": datetime.utcnow(),
        }
        if data.location is not None:
            updates["location"] = data.location
        if data.gender is not None:
            updates["gender"] = data.gender
        if data.age is not None:
            updates["age"] = data.age
            updates["isKid"] = data.age < KID_AGE_LIMIT
            updates["section"] = "kids" if data.age < KID_AGE_LIMIT else "adults"
        if data.section is not None:
            updates["section"] = data.section

        await self.db[USERS].update_one({"_id": user["_id"]}, {"$set": updates})
        user.update(updates)
        return public_user(user)

    async def get_me(self, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return public_user(user)
