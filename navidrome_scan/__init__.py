"""Rescan webhook: turns a POST into a Navidrome Subsonic ``startScan`` call.

Navidrome reports application errors inside an HTTP 200 response; the
envelope is parsed so such failures surface as 502.
"""

__version__ = "1.0.0"

from .client import NavidromeClient, SubsonicResponse
from .config import ScanConfig

__all__ = ["NavidromeClient", "ScanConfig", "SubsonicResponse"]
