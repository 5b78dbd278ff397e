import logging

import structlog
from structlog.typing import EventDict

from snapdiff.config import settings

LOGGING_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def add_env(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["env"] = settings.ENV
    return event_dict


def add_filename_section(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add a fixed-width, bracketed filename:lineno section after the log level for console logs.
    """
    filename = event_dict.pop("filename", "")
    lineno = event_dict.pop("lineno", "")
    event_dict["file"] = f"[{filename:<20}:{lineno:<4}]" if filename else "[unknown]"
    return event_dict


class CustomConsoleRenderer(structlog.dev.ConsoleRenderer):
    """
    Render the bracketed filename:lineno section right after the log level, in grey.
    """

    def __init__(self) -> None:
        super().__init__(sort_keys=False)

    def __call__(self, logger: logging.Logger, name: str, event_dict: EventDict) -> str:
        file_section = event_dict.pop("file", "")
        rendered = super().__call__(logger, name, event_dict)
        if not file_section:
            return rendered

        file_section = f"\x1b[90m{file_section}\x1b[0m"
        level_end = rendered.find("]")
        if level_end == -1:
            return f"{file_section} {rendered}"
        return rendered[: level_end + 1] + f" {file_section}" + rendered[level_end + 1 :]


def setup_logger() -> None:
    """
    Setup the logger with the specified format
    """
    if settings.JSON_LOGGING:
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
        callsite_processors: list[structlog.typing.Processor] = [
            structlog.processors.EventRenamer("msg"),
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            ),
        ]
    else:
        renderer = CustomConsoleRenderer()
        callsite_processors = [
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            ),
            add_filename_section,
        ]

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(LOGGING_LEVEL_MAP.get(settings.LOG_LEVEL, logging.INFO)),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_env,
            structlog.processors.format_exc_info,
        ]
        + callsite_processors
        + [renderer],
    )
    # selenium logs every wire request at debug level, the transport observers cover that
    logging.getLogger("selenium").setLevel(logging.WARNING)
