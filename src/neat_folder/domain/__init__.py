"""Domain primitives shared across neat-folder."""

from .result import Result, Success, Failure, partition

__all__ = ["Result", "Success", "Failure", "partition"]
