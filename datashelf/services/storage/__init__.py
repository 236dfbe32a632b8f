from .client import ObjectStorage, make_s3_client
from .capabilities import (
    Capability,
    CapabilityIssuer,
    UploadFlow,
    primary_object_key,
    storage_key,
)

__all__ = [
    "ObjectStorage",
    "make_s3_client",
    "Capability",
    "CapabilityIssuer",
    "UploadFlow",
    "primary_object_key",
    "storage_key",
]
