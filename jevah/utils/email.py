from email.message import EmailMessage
import logging

import aiosmtplib

from jevah.config import settings

logger = logging.getLogger(__name__)


async def send_email_async(subject: str, email_to: str, body: str) -> bool:
    """
    Envoie un e-mail texte.

    Returns False instead of raising when delivery fails; callers never fail
    on a mail error.
    """
    if not settings.MAIL_ENABLED:
        logger.info(f"Mail disabled, would send '{subject}' to {email_to}")
        return False

    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = email_to
    message["Subject"] = subject
    message.set_content(body)

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME,
            password=settings.MAIL_PASSWORD,
            start_tls=True,
            timeout=20,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send '{subject}' to {email_to}: {e}")
        return False

    logger.info(f"Mail '{subject}' sent to {email_to}")
    return True


def _greeting(first_name) -> str:
    return f"Hello {first_name}," if first_name else "Hello,"


async def send_verification_email(email: str, first_name, code: str) -> bool:
    body = (
        f"{_greeting(first_name)}\n\n"
        f"Your Jevah verification code is: {code}\n"
        "It expires in 10 minutes.\n\n"
        "If you did not create an account you can ignore this message."
    )
    return await send_email_async("Verify your Jevah account", email, body)


async def send_welcome_email(email: str, first_name) -> bool:
    body = (
        f"{_greeting(first_name)}\n\n"
        "Welcome to Jevah! Your e-mail is verified and your account is ready.\n"
        f"Start exploring: {settings.FRONTEND_URL}"
    )
    return await send_email_async("Welcome to Jevah", email, body)


async def send_reset_password_email(email: str, first_name, token: str) -> bool:
    body = (
        f"{_greeting(first_name)}\n\n"
        "We received a request to reset your password. Use this token within one hour:\n\n"
        f"{token}\n\n"
        f"Or open {settings.FRONTEND_URL}/reset-password?token={token}&email={email}"
    )
    return await send_email_async("Reset your Jevah password", email, body)


async def send_new_follower_email(email: str, artist_name: str, follower_name: str) -> bool:
    body = f"Hello {artist_name},\n\n{follower_name} just started following you on Jevah."
    return await send_email_async("You have a new follower", email, body)


async def send_media_liked_email(email: str, media_title: str, liker_name: str) -> bool:
    body = f"{liker_name} added \"{media_title}\" to their favorites."
    return await send_email_async("Someone liked your content", email, body)


async def send_merch_purchase_email(email: str, item_title: str, quantity: int, buyer_name: str) -> bool:
    body = f"{buyer_name} purchased {quantity} x \"{item_title}\"."
    return await send_email_async("New merchandise order", email, body)


async def send_game_completed_email(email: str, first_name, game_title: str, score: int) -> bool:
    body = f"{_greeting(first_name)}\n\nGreat job! You finished \"{game_title}\" with a score of {score}."
    return await send_email_async("Game completed!", email, body)
