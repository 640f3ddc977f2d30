class LocusOutOfRangeError(IndexError):
    pass


class ZeroDivisorError(ZeroDivisionError):
    """A statistic is undefined for the given data.

    It is raised when a denominator is zero and when a logarithm would be
    taken of a non-positive value.
    """


class UnsupportedDistMethodError(ValueError):
    pass
