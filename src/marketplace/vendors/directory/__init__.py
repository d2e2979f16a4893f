"""Vendor directory factory.

Provides get_directory() / set_directory() to swap implementations:
StaticVendorDirectory for development and testing, a catalogue-service
client in production.
"""

from marketplace.vendors.directory.fake_adapter import StaticVendorDirectory
from marketplace.vendors.directory.port import VendorDirectory

_current_directory: VendorDirectory | None = None


def get_directory() -> VendorDirectory:
    """Return the current vendor directory. Defaults to StaticVendorDirectory."""
    global _current_directory
    if _current_directory is None:
        _current_directory = StaticVendorDirectory()
    return _current_directory


def set_directory(directory: VendorDirectory) -> None:
    """Override the active vendor directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    """Reset to the default directory."""
    global _current_directory
    _current_directory = None
