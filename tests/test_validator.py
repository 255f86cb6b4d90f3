"""Upload validator boundaries."""

from folio.services.validator import INVALID_TYPE_MESSAGE, validate_upload

MB = 1024 * 1024


def test_accepts_file_exactly_at_ceiling():
    assert validate_upload("image/jpeg", 10 * MB).ok


def test_rejects_one_byte_over_ceiling_as_too_large():
    check = validate_upload("image/png", 10 * MB + 1)
    assert not check.ok
    assert check.kind == "size"
    assert check.reason == "File too large. Maximum size is 10MB."


def test_rejects_disallowed_type_regardless_of_size():
    for size in (1, 10 * MB, 50 * MB):
        check = validate_upload("image/gif", size)
        assert check.kind == "type"
        assert check.reason == INVALID_TYPE_MESSAGE


def test_missing_content_type_is_wrong_type():
    assert validate_upload(None, 100).kind == "type"


def test_content_type_is_case_insensitive():
    assert validate_upload("IMAGE/WEBP", 100).ok


def test_empty_file_rejected():
    check = validate_upload("image/jpeg", 0)
    assert check.kind == "empty"
    assert check.reason == "No file provided"


def test_custom_limits():
    assert not validate_upload("image/jpeg", 11, max_bytes=10).ok
    assert validate_upload("image/heic", 5, allowed_types=["image/heic"]).ok
