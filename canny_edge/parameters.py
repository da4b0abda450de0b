"""
Edge detection parameters with defaults and validation.
"""
import math
import logging
import numbers
import warnings
from dataclasses import dataclass, asdict
from typing import Dict, Any

from canny_edge.errors import (
    InvalidSigmaError,
    InvalidThresholdError,
    ThresholdOrderWarning,
)

logger = logging.getLogger(__name__)

DEFAULT_SIGMA = 1.0
DEFAULT_LOW_THRESHOLD = 30
DEFAULT_HIGH_THRESHOLD = 80

def validate_sigma(sigma: float) -> float:
    """Return sigma as float, rejecting zero, negative and non-finite values."""
    if isinstance(sigma, bool) or not isinstance(sigma, numbers.Real):
        raise InvalidSigmaError(f"Sigma must be a real number, got {sigma!r}")
    sigma = float(sigma)
    if not math.isfinite(sigma) or sigma <= 0:
        raise InvalidSigmaError(f"Sigma must be positive and finite, got {sigma}")
    return sigma

def validate_threshold(value: int, name: str) -> int:
    """Return a hysteresis threshold as int, rejecting values outside 0-255."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidThresholdError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if value < 0 or value > 255:
        raise InvalidThresholdError(f"{name} must be in range 0-255, got {value}")
    return value

def check_threshold_order(low_threshold: int, high_threshold: int, stacklevel: int = 2) -> bool:
    """
    Warn when the low threshold is above the high threshold.

    The pipeline still runs in that case, seeding from every pixel above the
    high threshold but growing only through pixels above the low one.

    Args:
        low_threshold: Lower hysteresis threshold
        high_threshold: Upper hysteresis threshold
        stacklevel: Frame the warning is attributed to, counted from the caller

    Returns:
        True if the thresholds are ordered, False if a warning was issued
    """
    if low_threshold <= high_threshold:
        return True
    message = (f"Low threshold {low_threshold} exceeds high threshold "
               f"{high_threshold}; edge map will be degenerate")
    logger.warning(message)
    warnings.warn(message, ThresholdOrderWarning, stacklevel=stacklevel + 1)
    return False

@dataclass(frozen=True)
class EdgeParameters:
    """Settings for one edge detection run."""

    sigma: float = DEFAULT_SIGMA
    low_threshold: int = DEFAULT_LOW_THRESHOLD
    high_threshold: int = DEFAULT_HIGH_THRESHOLD
    # Divide the Gaussian kernel by its sum; False keeps the raw kernel
    normalize_kernel: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'sigma', validate_sigma(self.sigma))
        object.__setattr__(self, 'low_threshold',
                           validate_threshold(self.low_threshold, 'low_threshold'))
        object.__setattr__(self, 'high_threshold',
                           validate_threshold(self.high_threshold, 'high_threshold'))
        object.__setattr__(self, 'normalize_kernel', bool(self.normalize_kernel))

    def with_overrides(self, **overrides) -> 'EdgeParameters':
        """Return a copy with the non-None overrides applied."""
        values = self.to_dict()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return EdgeParameters(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'EdgeParameters':
        """Build parameters from a dict, ignoring unknown keys."""
        known = {key: values[key] for key in
                 ('sigma', 'low_threshold', 'high_threshold', 'normalize_kernel')
                 if key in values}
        return cls(**known)
