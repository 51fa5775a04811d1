"""
Exceptions raised by the estimation pipeline.

Anything raised from here is fatal for a batch run: the input data
violates a contract the aggregates depend on.
"""


class MultigenError(Exception):
    """Base class for pipeline errors"""


class DecodeError(MultigenError):
    """Raw microdata holds a column or code outside the closed code tables"""


class InvalidWeightError(MultigenError):
    """A survey weight is negative or not a whole number"""


class HouseholdConsistencyError(MultigenError):
    """Members of one household disagree on a household-level field"""


class CrosswalkError(MultigenError):
    """Geographic reference table is malformed"""
