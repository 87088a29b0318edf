class RangeError(ValueError):
    """
    Raised when an instant falls outside the representable range.
    """


class ParseError(ValueError):
    """
    Raised when text does not match any accepted date-time form.
    """
