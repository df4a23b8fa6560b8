"""WooCommerce/WordPress upstream layer: descriptors, credentials, client, dispatch."""

from .descriptors import ApiFamily, MethodDescriptor, get_descriptor, iter_descriptors
from .credentials import CredentialDefaults, Credentials, resolve_credentials
from .client import StoreClient
from .dispatcher import Dispatcher

__all__ = [
    "ApiFamily",
    "MethodDescriptor",
    "get_descriptor",
    "iter_descriptors",
    "CredentialDefaults",
    "Credentials",
    "resolve_credentials",
    "StoreClient",
    "Dispatcher",
]
