from snapdiff.browser.actions import ActionSequence
from snapdiff.browser.browser import Browser
from snapdiff.browser.image import Image
from snapdiff.browser.observers import DebugObserver, TransportObserver
from snapdiff.browser.transport import SeleniumTransport, Transport

__all__ = [
    "ActionSequence",
    "Browser",
    "DebugObserver",
    "Image",
    "SeleniumTransport",
    "Transport",
    "TransportObserver",
]
