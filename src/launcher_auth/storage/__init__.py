"""Storage"""

from launcher_auth.storage.bundle_store import BundleStore

__all__ = ["BundleStore"]
