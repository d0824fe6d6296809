"""
Price Text - Lexer for dollar amounts embedded in free text.

Text such as ``"Top 5: $4,500Top 10: $5,500"`` is split into literal
segments and price tokens. Only price tokens are ever rewritten, and
rendering the untouched segments gives back the original string.
"""
import math
import re
from dataclasses import dataclass
from typing import Callable, Optional, Union

_PRICE_PATTERN = re.compile(r'\$[\d,]+(?:\.\d+)?')


@dataclass
class Literal:
    """Text between prices, kept verbatim."""
    text: str


@dataclass
class PriceToken:
    """A ``$N`` token. ``value`` is None when the digits could not be parsed."""
    text: str
    value: Optional[float]
    decimals: int = 0


Segment = Union[Literal, PriceToken]


def parse_dollars(text: Optional[str]) -> Optional[float]:
    """Parse ``"$2,000"`` / ``"2000"`` style text. Returns None if not numeric."""
    if text is None:
        return None
    cleaned = str(text).replace('$', '').replace(',', '').strip()
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def count_decimals(text: str) -> int:
    """Number of digits after the decimal point in a price string."""
    _, dot, fraction = str(text).partition('.')
    if not dot:
        return 0
    return len(fraction.strip())


def format_dollars(amount: float, decimals: int = 0) -> str:
    """Format as ``$2,000`` (or ``$2,000.00`` when decimals are requested)."""
    return f"${amount:,.{decimals}f}"


def lex_prices(text: str) -> list[Segment]:
    """Split ``text`` into literal segments and price tokens, in order."""
    segments: list[Segment] = []
    position = 0

    for match in _PRICE_PATTERN.finditer(text):
        raw = match.group(0)
        # "$75, CBD" - the separator comma is text, not part of the number
        token_text = raw.rstrip(',') if '.' not in raw else raw
        trailing = raw[len(token_text):]

        if match.start() > position:
            segments.append(Literal(text[position:match.start()]))

        segments.append(PriceToken(
            text=token_text,
            value=parse_dollars(token_text),
            decimals=count_decimals(token_text),
        ))
        if trailing:
            segments.append(Literal(trailing))
        position = match.end()

    if position < len(text):
        segments.append(Literal(text[position:]))

    return segments


def render(segments: list[Segment]) -> str:
    """Join segments back into a string."""
    return ''.join(segment.text for segment in segments)


def rewrite_prices(text: str, transform: Callable[[float], Optional[float]]) -> str:
    """
    Rewrite every parseable price token in ``text``.

    ``transform`` receives the token's value and returns the new amount, or
    None to leave the token exactly as written. Unparseable tokens are always
    left as written.
    """
    segments = lex_prices(text)
    for segment in segments:
        if not isinstance(segment, PriceToken) or segment.value is None:
            continue
        new_value = transform(segment.value)
        if new_value is None:
            continue
        segment.text = format_dollars(new_value, segment.decimals)
        segment.value = new_value
    return render(segments)
