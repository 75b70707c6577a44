"""
Utility functions for the Thing Model to code generator.
"""

import re

# Runs of anything that is not a letter or digit separate words
_SEPARATOR_PATTERN = re.compile(r"[^0-9A-Za-z]+")

# Split before every uppercase letter, keeping it with the following piece
_UPPERCASE_BOUNDARY = re.compile(r"(?=[A-Z])")

# Regex pattern to split text into words for snake_case conversion
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")


def _split_into_tokens(text: str) -> list[str]:
    """Split text on separators (spaces, hyphens, underscores, punctuation)."""
    return [token for token in _SEPARATOR_PATTERN.split(text) if token]


def _lower_if_all_uppercase(token: str) -> str:
    """Treat an all-uppercase token such as "ID" as a single word."""
    if len(token) > 1 and token == token.upper() and any(c.isalpha() for c in token):
        return token.lower()
    return token


def _split_by_uppercase(token: str) -> list[str]:
    """Split a token at its case boundaries."""
    return [piece for piece in _UPPERCASE_BOUNDARY.split(token) if piece]


def to_pascal_case(text: str) -> str:
    """Convert separated, camelCase or space-separated text to PascalCase.

    Examples:
        "battery-level" -> "BatteryLevel"
        "Floor Lamp" -> "FloorLamp"
        "ID" -> "Id"
        "deviceId" -> "DeviceId"
        "first_name" -> "FirstName"

    Args:
        text: The text to convert

    Returns:
        PascalCase string, empty when text holds no letters or digits
    """
    if not text:
        return ""
    pieces: list[str] = []
    for token in _split_into_tokens(text):
        pieces.extend(_split_by_uppercase(_lower_if_all_uppercase(token)))
    return "".join(piece.lower().capitalize() for piece in pieces)


def to_snake_case(text: str) -> str:
    """Convert PascalCase or camelCase text to snake_case.

    Examples:
        "FloorLamp" -> "floor_lamp"
        "switchOn" -> "switch_on"
    """
    words = _WORD_PATTERN.findall(text.replace("_", " ").replace("-", " "))
    return "_".join(word.lower() for word in words)
