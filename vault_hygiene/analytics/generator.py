"""
Password Generator — random passwords from the OS CSPRNG.
"""
import secrets

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

DEFAULT_LENGTH = 16
MIN_LENGTH = 8
MAX_LENGTH = 128


def generate_password(
    length: int = DEFAULT_LENGTH,
    uppercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
) -> str:
    """Generate a random password.

    Lowercase letters are always part of the alphabet; the other classes
    are opt-out.

    Args:
        length: Number of characters, between 8 and 128.
        uppercase: Include A-Z.
        numbers: Include 0-9.
        symbols: Include punctuation symbols.

    Returns:
        The generated password.

    Raises:
        ValueError: If length is out of range.
    """
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise ValueError(
            f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}, "
            f"got {length}"
        )
    alphabet = LOWERCASE
    if uppercase:
        alphabet += UPPERCASE
    if numbers:
        alphabet += DIGITS
    if symbols:
        alphabet += SYMBOLS
    return "".join(secrets.choice(alphabet) for _ in range(length))
