"""Display-safe rendering of payment card numbers."""

MASK_PREFIX = "****-****-****-"
SHORT_MASK = "****"


def mask_credit_card(number: str) -> str:
    """Mask all but the last four characters of a card number.

    Args:
        number: Card number as a digit string.

    Returns:
        str: ``"****"`` when the input is shorter than four characters,
        otherwise ``"****-****-****-"`` followed by the last four characters.
    """
    if len(number) < 4:
        return SHORT_MASK
    return MASK_PREFIX + number[-4:]
