"""
Collectors for producers that emit output through a chunk callback

A producer calls ``callback(part, user_data)`` zero or more times. ``part`` is
any bytes-like object, or a ``StringRef`` when the producer is native code
calling through ``c_callback``.
"""
import ctypes
import logging
import threading
from functools import cached_property

from errors import contract_violation


logger = logging.getLogger(__name__)

# Stands in for the embedding runtime's own lock; writes into Python objects
# from producer threads happen under it.
RUNTIME_LOCK = threading.RLock()


class StringRef(ctypes.Structure):
    _fields_ = [("data", ctypes.c_void_p), ("length", ctypes.c_size_t)]


STRING_CALLBACK = ctypes.CFUNCTYPE(None, StringRef, ctypes.c_void_p)


def chunk_bytes(part) -> bytes:
    """
    Copy one chunk out of the producer's memory
    """
    if isinstance(part, StringRef):
        if not part.length:
            return b""
        return ctypes.string_at(part.data, part.length)
    return bytes(part)


class Accumulator:
    def on_chunk(self, data: bytes) -> None:
        raise NotImplementedError

    @property
    def user_data(self) -> int:
        # opaque to the producer; callbacks are bound and never read it back
        return id(self)

    def callback(self, part, user_data=None) -> None:
        self.on_chunk(chunk_bytes(part))

    @cached_property
    def c_callback(self):
        """
        A native function pointer for this accumulator

        The pointer stays valid for as long as the accumulator is alive.
        """
        return STRING_CALLBACK(self.callback)


class PrintAccumulator(Accumulator):
    """
    Joins every chunk, decoded as UTF-8, into one string
    """

    def __init__(self):
        self.parts: list[str] = []

    def on_chunk(self, data: bytes) -> None:
        self.parts.append(data.decode("utf-8"))

    def join(self) -> str:
        return "".join(self.parts)


class FileAccumulator(Accumulator):
    """
    Forwards every chunk straight to a file-like object's write method

    Text mode decodes chunks as UTF-8, binary mode writes the raw bytes. Each
    write holds ``lock`` so producer threads never interleave partial writes.
    """

    def __init__(self, file_object, binary: bool = False, lock=None):
        self.write = file_object.write
        self.binary = binary
        self.lock = RUNTIME_LOCK if lock is None else lock

    def on_chunk(self, data: bytes) -> None:
        with self.lock:
            if self.binary:
                self.write(data)
            else:
                self.write(data.decode("utf-8"))


class SinglePartStringAccumulator(Accumulator):
    """
    Holds the one chunk of a producer documented to call back exactly once
    """

    def __init__(self):
        self.value = ""
        self.invoked = False
        self.violation = None

    def on_chunk(self, data: bytes) -> None:
        if self.invoked:
            # ctypes drops exceptions raised here; take_value raises it again
            self.violation = contract_violation(
                "SinglePartStringAccumulator called back multiple times"
            )
            raise self.violation
        self.invoked = True
        self.value = data.decode("utf-8")

    def take_value(self) -> str:
        if self.violation is not None:
            raise self.violation
        if not self.invoked:
            raise contract_violation("SinglePartStringAccumulator not called back")
        value, self.value = self.value, ""
        return value
