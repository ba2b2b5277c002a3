"""
Core services for the application.

This package contains the state store, the remote document client and the
supporting persistence pieces (preferences, debouncing, bundle import/export).
"""

from .bundle_io import export_bundle, parse_bundle_text, validate_bundle
from .debounce import Debouncer
from .jsonbin import JsonBinClient
from .preferences import LocalPreferenceStore
from .result import Result
from .store import AppStore, AuthState

__all__ = [
    "AppStore",
    "AuthState",
    "Debouncer",
    "JsonBinClient",
    "LocalPreferenceStore",
    "Result",
    "export_bundle",
    "parse_bundle_text",
    "validate_bundle",
]
