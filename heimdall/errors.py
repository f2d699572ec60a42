"""Pipeline error codes and the exception that carries them."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Status codes reported by the search pipeline."""

    NO_ERROR = 0
    MEM_ALLOC_FAILED = 1
    MEM_COPY_FAILED = 2
    INVALID_DEVICE_INDEX = 3
    DEVICE_ALREADY_SET = 4
    INVALID_PIPELINE = 5
    INVALID_POINTER = 6
    INVALID_STRIDE = 7
    INVALID_NBITS = 8
    PRIOR_GPU_ERROR = 9
    INTERNAL_GPU_ERROR = 10
    TOO_MANY_EVENTS = 11
    UNKNOWN_ERROR = 12


_MESSAGES = {
    ErrorCode.NO_ERROR: "No error",
    ErrorCode.MEM_ALLOC_FAILED: "Memory allocation failed",
    ErrorCode.MEM_COPY_FAILED: "Memory copy failed",
    ErrorCode.INVALID_DEVICE_INDEX: "Invalid device index",
    ErrorCode.DEVICE_ALREADY_SET: "Device is already set and cannot be changed",
    ErrorCode.INVALID_PIPELINE: "Invalid pipeline",
    ErrorCode.INVALID_POINTER: "Invalid pointer",
    ErrorCode.INVALID_STRIDE: "Invalid stride",
    ErrorCode.PRIOR_GPU_ERROR: "Prior GPU error.",
    ErrorCode.INTERNAL_GPU_ERROR: "Internal GPU error. Please contact the author(s).",
    ErrorCode.TOO_MANY_EVENTS: "Too many events",
    ErrorCode.UNKNOWN_ERROR: "Unknown error. Please contact the author(s).",
}

_INVALID_CODE = "Invalid error code"


def get_error_string(error: int) -> str:
    """Return the human-readable description of an error code."""
    try:
        code = ErrorCode(error)
    except ValueError:
        return _INVALID_CODE
    return _MESSAGES.get(code, _INVALID_CODE)


class PipelineError(Exception):
    """Raised when a pipeline stage fails with a given error code."""

    def __init__(self, code: int) -> None:
        try:
            self.code: int = ErrorCode(code)
        except ValueError:
            self.code = code
        self.message = get_error_string(code)
        super().__init__(self.message)