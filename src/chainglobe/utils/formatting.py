"""Display formatting for dollar amounts, counts and percentages."""

from typing import Optional

NOT_AVAILABLE = "N/A"


def format_usd(value: float, decimals: int = 1) -> str:
    """
    Format a dollar amount with a magnitude suffix.

    Example:
        >>> format_usd(52_000_000_000)
        '$52.0B'
        >>> format_usd(950)
        '$950.0'
    """
    if value >= 1e12:
        return f"${value / 1e12:.{decimals}f}T"
    if value >= 1e9:
        return f"${value / 1e9:.{decimals}f}B"
    if value >= 1e6:
        return f"${value / 1e6:.{decimals}f}M"
    if value >= 1e3:
        return f"${value / 1e3:.{decimals}f}K"
    return f"${value:.{decimals}f}"


def format_count(value: float) -> str:
    """Format a count as '1.2M+', '3.4K+' or '12+'."""
    if value >= 1e6:
        return f"{value / 1e6:.1f}M+"
    if value >= 1e3:
        return f"{value / 1e3:.1f}K+"
    return f"{round(value)}+"


def format_liquidity(value: float) -> str:
    """Liquidity uses two decimals for billions and none for thousands."""
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.1f}M"
    return f"${value / 1e3:.0f}K"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_price(value: Optional[float]) -> str:
    """Prices under a dollar keep more precision."""
    if value is None:
        return NOT_AVAILABLE
    if value < 1:
        return f"${value:.4f}"
    return f"${value:,.2f}"


def or_placeholder(value: Optional[float], formatter=format_usd) -> str:
    """Format value, or return the neutral placeholder when it is missing."""
    if value is None:
        return NOT_AVAILABLE
    return formatter(value)
