"""
Pre-tokenization text normalization.

International number formats write ``1.234,5`` where the tokenizer expects
``1,234.5``; the swap is a plain 1:1 character exchange with no validation.
"""

_SWAP_TABLE = str.maketrans({",": ".", ".": ","})


def swap_periods_and_commas(text: str) -> str:
    """Exchanges every ``,`` with ``.`` and vice versa."""
    return text.translate(_SWAP_TABLE)


def strip_whitespace(text: str) -> str:
    """Removes whitespace and control characters."""
    return "".join(ch for ch in text if ch.isprintable() and not ch.isspace())


def normalize_expression(text: str, international_format: bool = False) -> str:
    """
    Prepares raw user input for the tokenizer.

    Args:
        text: The expression as typed
        international_format: Swap decimal and thousands separators first

    Returns:
        The expression without whitespace, with separators in tokenizer order
    """
    if international_format:
        text = swap_periods_and_commas(text)
    return strip_whitespace(text)
