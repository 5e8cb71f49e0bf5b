"""Utility functions for handling ticker symbols."""


def normalize_symbol(symbol: str) -> str:
    """Normalize a ticker to the canonical uppercase form.

    Raises:
        ValueError: If the symbol is blank.
    """
    normalized = (symbol or "").strip().upper()
    if not normalized:
        raise ValueError("Symbol must not be blank")
    return normalized


def normalize_symbols(symbols: list[str]) -> list[str]:
    """Normalize and de-duplicate symbols, keeping first-seen order.

    Blank entries are dropped.
    """
    seen: dict[str, None] = {}
    for symbol in symbols:
        if symbol and symbol.strip():
            seen.setdefault(normalize_symbol(symbol), None)
    return list(seen)
