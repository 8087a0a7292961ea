"""User presence reconciliation job."""
from presence_sync.version import APP_VERSION

__version__ = APP_VERSION
