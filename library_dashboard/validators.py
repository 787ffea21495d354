import re
from typing import Optional, Union

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_TITLE_LENGTH = 3


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return EMAIL_RE.fullmatch(email) is not None


def is_valid_title(title: Optional[str]) -> bool:
    return title is not None and len(title) >= MIN_TITLE_LENGTH


def to_int_or_none(value: Union[int, str, None]) -> Optional[int]:
    """
    Normaliza un entero que puede llegar como número o como texto de formulario.

    Vacío, None o 0 se guardan como NULL. Texto no numérico lanza ValueError.
    """
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, int):
        return value
    text = value.strip()
    if not text:
        return None
    return int(text)
