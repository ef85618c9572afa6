"""Numerical and lexical constants."""

# Largest denominator allowed when snapping solver output to fractions.
MAX_DENOMINATOR = 100

# Formula tokens, tried in order.
TOKEN_PATTERNS = (
    ("ELEM", r"[A-Z][a-z]{0,2}"),
    ("NUM", r"[1-9][0-9]*"),
    ("LPAREN", r"[(\[]"),
    ("RPAREN", r"[)\]]"),
    ("PLUS", r"\+"),
    ("ARROW", r"->|=>|=|→"),
    ("SPACE", r"[ \t]+"),
    ("INVALID", r"."),
)
