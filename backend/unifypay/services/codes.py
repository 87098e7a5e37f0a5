"""Sequential record codes: IN001, EX001, DE001, ..."""
from typing import Optional

CODE_WIDTH = 3
PREFIX_LENGTH = 2

# category -> prefix; a category is the scope of one sequence
PREFIXES = {
    "income": "IN",
    "expense": "EX",
    "deposit": "DE",
}


def prefix_for(category: str) -> str:
    try:
        return PREFIXES[category]
    except KeyError:
        raise ValueError(f"Unknown code category: {category}") from None


def code_number(code: str) -> int:
    """Numeric suffix of a code, e.g. ``IN005`` -> 5."""
    return int(code[PREFIX_LENGTH:])


def format_code(prefix: str, number: int) -> str:
    return f"{prefix}{number:0{CODE_WIDTH}d}"


def next_code(prefix: str, last_code: Optional[str] = None) -> str:
    """
    Code following ``last_code`` in the same sequence.

    Args:
        prefix: Two-letter category prefix
        last_code: Highest existing code in the category, or None for an
            empty category

    Returns:
        ``{prefix}001`` for an empty category, otherwise the suffix plus one
    """
    if not last_code:
        return format_code(prefix, 1)
    return format_code(prefix, code_number(last_code) + 1)
