import logging


logger = logging.getLogger(__name__)


class StridebinError(Exception):
    pass


class SliceIndexError(StridebinError, IndexError):
    """
    An integer index fell outside the view after negative-index wrapping
    """


class SubscriptTypeError(StridebinError, TypeError, ValueError):
    """
    A subscript was neither an integer nor a well-formed slice
    """


class DefaultingTypeError(StridebinError, TypeError):
    """
    A supplied argument is not an instance of the defaulted type
    """


class ResolutionError(StridebinError, LookupError):
    """
    No current default is registered for a defaulted argument
    """


class ContractViolation(StridebinError, AssertionError):
    """
    An invariant was broken by a collaborator or by this library itself

    These are programming errors and must not be caught and recovered from.
    """


def contract_violation(message: str) -> ContractViolation:
    """
    Log and return a contract violation, ready to be raised
    """
    logger.error("contract violation: %s", message)
    return ContractViolation(message)
