import secrets


def generate_verification_code() -> str:
    """6-character uppercase hex code sent by e-mail."""
    return secrets.token_hex(3).upper()


def generate_reset_token() -> str:
    return secrets.token_hex(20)


def generate_stream_key() -> str:
    return secrets.token_urlsafe(24)
