"""검색 프로바이더 어댑터"""

from .base import BaseProvider
from .google_vision import GoogleVisionProvider
from .http_client import SharedHttpClient, get_shared_http_client, shutdown_shared_http_client
from .proprietary import FingerprintIndex, KnownOccurrence, ProprietaryProvider
from .registry import AdapterSpec, ProviderAdapterRegistry, ProviderContext, default_registry
from .tineye import TinEyeProvider

__all__ = [
    "BaseProvider",
    "GoogleVisionProvider",
    "TinEyeProvider",
    "ProprietaryProvider",
    "FingerprintIndex",
    "KnownOccurrence",
    "SharedHttpClient",
    "get_shared_http_client",
    "shutdown_shared_http_client",
    "AdapterSpec",
    "ProviderAdapterRegistry",
    "ProviderContext",
    "default_registry",
]
