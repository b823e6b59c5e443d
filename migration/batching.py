"""
Batch sizing against the destination's bound-parameter ceiling
"""

from typing import Iterator, List, Optional, Sequence, TypeVar
import logging

from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def max_batch_rows(column_count: int, parameter_ceiling: int) -> int:
    """
    Largest number of rows one multi-row INSERT may carry.

    >>> max_batch_rows(5, 99)
    19
    >>> max_batch_rows(6, 99)
    16
    """
    if column_count <= 0:
        raise ConfigurationError(
            "Column count must be positive",
            context={"column_count": column_count}
        )
    if column_count > parameter_ceiling:
        raise ConfigurationError(
            f"A single row of {column_count} columns exceeds the destination "
            f"limit of {parameter_ceiling} bound parameters",
            context={"column_count": column_count, "parameter_ceiling": parameter_ceiling}
        )
    return parameter_ceiling // column_count


def resolve_batch_size(
    column_count: int,
    parameter_ceiling: int,
    requested: Optional[int] = None
) -> int:
    """Clamp a requested batch size to the safe maximum (no request means the maximum)."""
    maximum = max_batch_rows(column_count, parameter_ceiling)

    if requested is None:
        return maximum

    if requested > maximum:
        logger.info(
            f"Requested batch size ({requested}) exceeds the bound-parameter limit; "
            f"using maximum safe batch size: {maximum}"
        )
        return maximum

    return requested


def chunked(rows: Sequence[T], size: int) -> Iterator[List[T]]:
    """Split rows into consecutive batches of at most ``size``, preserving order."""
    for i in range(0, len(rows), size):
        yield list(rows[i:i + size])
