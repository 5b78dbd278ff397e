from snapdiff.log import setup_logger

setup_logger()

from snapdiff.browser import ActionSequence, Browser, Image  # noqa: E402
from snapdiff.config import BrowserConfig, HttpOptions, WindowSize  # noqa: E402

__all__ = [
    "ActionSequence",
    "Browser",
    "BrowserConfig",
    "HttpOptions",
    "Image",
    "WindowSize",
]
