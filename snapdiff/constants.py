from pathlib import Path

SNAPDIFF_DIR = Path(__file__).parent
REPO_ROOT_DIR = SNAPDIFF_DIR.parent
CLIENT_SCRIPTS_DIR = SNAPDIFF_DIR / "browser" / "client_scripts"

# global object the client script installs into every opened page
CLIENT_SCRIPT_NAMESPACE = "__snapdiff"

DEFAULT_GRID_URL = "http://localhost:4444/wd/hub"
DEFAULT_CAPABILITIES: dict[str, bool] = {"takesScreenshot": True}

# default window of this engine is too small to fit element shadows, so it gets maximized on launch
MAXIMIZE_BROWSER_NAME = "phantomjs"

# legacy JSON wire protocol status codes
NO_SUCH_ELEMENT_STATUS = 7
NO_SUCH_FRAME_STATUS = 8
STALE_ELEMENT_REFERENCE_STATUS = 10
ELEMENT_NOT_VISIBLE_STATUS = 11
INVALID_ELEMENT_STATE_STATUS = 12
UNKNOWN_ERROR_STATUS = 13
JAVASCRIPT_ERROR_STATUS = 17
TIMEOUT_STATUS = 21
NO_SUCH_WINDOW_STATUS = 23
UNEXPECTED_ALERT_OPEN_STATUS = 26
NO_ALERT_OPEN_STATUS = 27
INVALID_SELECTOR_STATUS = 32
SESSION_NOT_CREATED_STATUS = 33
MOVE_TARGET_OUT_OF_BOUNDS_STATUS = 34

CONNECTION_REFUSED = "ECONNREFUSED"

SCREENSHOT_COMMAND = "take_screenshot()"
BINARY_DATA_PLACEHOLDER = "<binary-data>"

DEFAULT_WAIT_TIMEOUT_MS = 1000
