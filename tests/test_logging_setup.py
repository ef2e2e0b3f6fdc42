import io
import logging

from cloudflare_ddns.logging_setup import setup_logging


def test_setup_logging_replaces_handlers_and_formats() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    try:
        setup_logging("debug", stream=io.StringIO())
        setup_logging("warning", stream=stream)

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

        logging.getLogger("cloudflare-ddns").warning("Update pass failed: %s", "boom")
        logging.getLogger("cloudflare-ddns").info("hidden")
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)

    output = stream.getvalue()
    assert "[WARNING ] cloudflare-ddns: Update pass failed: boom" in output
    assert "hidden" not in output
