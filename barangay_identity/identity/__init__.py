"""
Identity Resolution Module

Pre-registration check of whether a candidate email or phone number is already
claimed across the credential store and the profile directory.
"""

from .normalization import normalize_email, normalize_phone
from .resolver import IdentityResolver, ProbeFailureMode
from .types import IdentityCheckRequest, IdentityReport

__all__ = [
    "IdentityResolver",
    "ProbeFailureMode",
    "IdentityCheckRequest",
    "IdentityReport",
    "normalize_email",
    "normalize_phone",
]
