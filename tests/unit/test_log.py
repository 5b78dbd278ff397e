from snapdiff.config import settings
from snapdiff.log import CustomConsoleRenderer, add_env, add_filename_section


def test_add_filename_section() -> None:
    event_dict = {"event": "Launching browser", "filename": "browser.py", "lineno": 87}

    event_dict = add_filename_section(None, "info", event_dict)

    assert event_dict == {"event": "Launching browser", "file": f"[{'browser.py':<20}:{87:<4}]"}


def test_add_filename_section__unknown() -> None:
    assert add_filename_section(None, "info", {"event": "x"})["file"] == "[unknown]"


def test_add_env() -> None:
    assert add_env(None, "info", {"event": "x"}) == {"event": "x", "env": settings.ENV}


def test_console_renderer__file_section_after_level() -> None:
    renderer = CustomConsoleRenderer()

    rendered = renderer(None, "info", {"event": "Browser launched", "level": "info", "file": "[browser.py:100 ]"})

    assert "[browser.py:100 ]" in rendered
    assert rendered.index("[browser.py:100 ]") > rendered.index("info")
