"""
External store access for the identity boundary.

Ports (protocols) plus the hosted-backend adapters and the startup-built handle.
"""

from .backend import Backend, build_backend
from .ports import (
    CallerIdentity,
    CredentialStore,
    MfaFactorRecord,
    MfaFactorStore,
    ProfileDirectory,
    ResourceDirectory,
    ResourceRecord,
    SessionVerifier,
    StoreError,
)

__all__ = [
    "Backend",
    "build_backend",
    "CallerIdentity",
    "CredentialStore",
    "MfaFactorRecord",
    "MfaFactorStore",
    "ProfileDirectory",
    "ResourceDirectory",
    "ResourceRecord",
    "SessionVerifier",
    "StoreError",
]
