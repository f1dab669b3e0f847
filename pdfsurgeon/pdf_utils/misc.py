"""
Utility functions and exception classes for the PDF object model.

Generally, all of these constitute internal API, except for the exception
classes and :class:`.ErrorPolicy`.
"""

import enum
import logging
from typing import Callable, Optional

__all__ = [
    'PdfError', 'PdfReadError', 'PdfWriteError', 'PdfStreamError',
    'UnexpectedObjectType', 'IndirectObjectExpected',
    'ErrorPolicy', 'get_and_apply', 'Singleton', 'DEFAULT_CHUNK_SIZE',
    'chunked_write',
]

DEFAULT_CHUNK_SIZE = 4096
"""
Default chunk size for stream I/O.
"""


class PdfError(Exception):

    def __init__(self, msg: str, *args):
        self.msg = msg
        super().__init__(msg, *args)


class PdfReadError(PdfError):
    pass


class UnexpectedObjectType(PdfReadError):
    """
    Raised when a value of one kind was requested, but a value of another
    kind is stored.
    """

    def __init__(self, msg: Optional[str] = None, *,
                 expected=None, actual=None):
        if msg is None:
            exp = getattr(expected, '__name__', expected)
            act = type(actual).__name__
            msg = f"expected {exp}, found {act}"
        super().__init__(msg)


class IndirectObjectExpected(UnexpectedObjectType):
    def __init__(self, msg: Optional[str] = None):
        super().__init__(msg=msg or "indirect object expected")


class PdfWriteError(PdfError):
    pass


class PdfStreamError(PdfReadError):
    pass


class ErrorPolicy(enum.Enum):
    """
    Determines how whole-document passes deal with failures on individual
    objects.
    """

    CONTINUE = 'continue'
    """
    Log the failure, skip the offending object and carry on with the rest
    of the document.
    """

    FAIL_FAST = 'fail-fast'
    """
    Abort the pass by re-raising the first failure.
    """

    def handle(self, logger: logging.Logger, msg: str, err: Exception):
        """
        Apply the policy to a failure that occurred while processing a single
        object. Under :attr:`FAIL_FAST`, this re-raises ``err``.
        """
        if self == ErrorPolicy.FAIL_FAST:
            raise err
        logger.warning(f"{msg}: {err}")


def get_and_apply(dictionary: dict, key, function: Callable, *, default=None):
    try:
        value = dictionary[key]
    except KeyError:
        return default
    return function(value)


def chunked_write(data: bytes, output, chunk_size=DEFAULT_CHUNK_SIZE):
    view = memoryview(data)
    for start in range(0, len(view), chunk_size):
        output.write(view[start:start + chunk_size])


class Singleton(type):

    def __new__(mcs, name, bases, dct):
        cls = type.__new__(mcs, name, bases, dct)
        instance = type.__call__(cls)
        cls.__new__ = lambda _: instance
        return cls
