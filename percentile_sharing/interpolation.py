"""Interpolation policies resolving a value between two ranked elements.

Every policy is a pure function ``(lower, upper, fraction) -> value`` where
*lower* and *upper* are adjacent elements of a sorted sequence and
*fraction* in ``[0, 1)`` is the position of the target rank between them.
Custom callables with the same signature can be used wherever a policy is
expected.
"""

from typing import Any, Dict, Protocol, TypeVar, Union

from .exceptions import ConfigurationError

T = TypeVar("T")


class InterpolationPolicy(Protocol):
    """Signature shared by all interpolation policies."""

    def __call__(self, lower: Any, upper: Any, fraction: float) -> Any: ...


def floor(lower: T, upper: T, fraction: float) -> T:  # pylint: disable=unused-argument
    """Nearest rank at or below the target."""
    return lower


def ceiling(lower: T, upper: T, fraction: float) -> T:  # pylint: disable=unused-argument
    """Nearest rank at or above the target."""
    return upper


def half_up(lower: T, upper: T, fraction: float) -> T:
    """Nearest rank, ties going to the upper element."""
    return lower if fraction < 0.5 else upper


def linear(lower: Any, upper: Any, fraction: float) -> Any:
    """Linear interpolation for numeric elements.

    Evaluated as ``lower - lower * fraction + upper * fraction`` rather than
    ``lower + (upper - lower) * fraction``; the two differ in the last bit
    for some inputs and results must match the former.

    Args:
        lower: Element at the lower rank.
        upper: Element at the upper rank.
        fraction: Weight of *upper*, in ``[0, 1)``.

    Returns:
        The interpolated value.
    """
    return lower - (lower * fraction) + (upper * fraction)


POLICIES: Dict[str, InterpolationPolicy] = {
    "floor": floor,
    "ceiling": ceiling,
    "half_up": half_up,
    "linear": linear,
}


def get_policy(policy: Union[str, InterpolationPolicy]) -> InterpolationPolicy:
    """Look up a built-in policy by name, passing callables through.

    Args:
        policy: One of ``floor``, ``ceiling``, ``half_up``, ``linear`` or a
            callable policy.

    Returns:
        The policy function.

    Raises:
        ConfigurationError: If *policy* is an unknown name.
    """
    if callable(policy):
        return policy
    try:
        return POLICIES[policy]
    except KeyError:
        raise ConfigurationError(
            [f"Unknown interpolation policy {policy!r}; expected one of {sorted(POLICIES)}"]
        ) from None
