# f5_as3_translator/version_gate.py
import re
import logging
from typing import Iterable, Optional, Tuple

from f5_as3_translator.errors import UnknownVersionError

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r'^\d+(?:\.\d+)*')


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Convert a dotted version string into a tuple of integers.

    Trailing build qualifiers are dropped, so '15.1.0.4-0.0.6' compares as (15, 1, 0, 4).

    Raises:
        UnknownVersionError: If the string does not start with a numeric component
    """
    if not isinstance(version, str):
        raise UnknownVersionError(f"Version must be a string, got {type(version).__name__}")

    match = VERSION_PATTERN.match(version.strip())
    if not match:
        raise UnknownVersionError(f"Version '{version}' has no numeric components")
    return tuple(int(part) for part in match.group(0).split('.'))


def _pad(left: Tuple[int, ...], right: Tuple[int, ...]) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Zero-pad two version tuples to equal length so 15.0 == 15.0.0"""
    width = max(len(left), len(right))
    return left + (0,) * (width - len(left)), right + (0,) * (width - len(right))


def version_less_than(version: str, other: str) -> bool:
    """Return True if version sorts numerically before other ("9.0" < "14.1")."""
    left, right = _pad(parse_version(version), parse_version(other))
    return left < right


def version_in_range(version: str, min_version: Optional[str] = None,
                     max_version: Optional[str] = None) -> bool:
    """
    Check whether a target version falls inside an inclusive feature window.

    Args:
        version: Target platform version
        min_version: First version the feature applies to, or None for no lower bound
        max_version: Last version the feature applies to, or None for no upper bound

    Returns:
        True when min_version <= version <= max_version
    """
    if min_version is not None and version_less_than(version, min_version):
        return False
    if max_version is not None and version_less_than(max_version, version):
        return False
    return True


def is_one_of_provisioned(provisioned_modules: Optional[Iterable[str]], modules: Iterable[str]) -> bool:
    """
    Check whether any of the given modules is provisioned.

    An empty module list means no module is required. Unknown provisioning (None) means
    nothing is provisioned.
    """
    modules = list(modules or [])
    if not modules:
        return True
    provisioned = set(provisioned_modules or [])
    return any(module in provisioned for module in modules)
