"""Tests for the error log."""

from store_zotero.errors import AttachmentNotFoundError, log_exception


def test_log_exception_appends_traceback(isolated_env):
    try:
        raise AttachmentNotFoundError("AAAA1111")
    except AttachmentNotFoundError as e:
        path = log_exception(e, context="store-zotero CLI")

    assert path == isolated_env / "errors.log"
    text = path.read_text()
    assert "store-zotero CLI" in text
    assert "no attachment found for item: AAAA1111" in text
    assert "Traceback" in text
