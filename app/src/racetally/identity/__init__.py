"""Player-to-team identity resolution."""
from .names import group_by_initial, initial_key, longest_common_prefix, normalize_name
from .resolver import IdentityResolver

__all__ = [
    "IdentityResolver",
    "group_by_initial",
    "initial_key",
    "longest_common_prefix",
    "normalize_name",
]
