"""Core engine of a web fuzzer: option validation, request templating, auto-calibration, rate control and job control."""

__version__ = "2.0.0"

__all__ = [
    "autocalibration",
    "config",
    "errors",
    "history",
    "interfaces",
    "job",
    "optrange",
    "options",
    "parser",
    "rate",
    "request",
    "response",
    "util",
    "valuerange",
]