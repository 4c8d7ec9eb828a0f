"""Tests for the error taxonomy."""

from __future__ import annotations

from notemap.errors import ErrorCode, InternalError, NotFoundError, ValidationError


class TestNotFoundError:
    def test_known_entity_code(self) -> None:
        err = NotFoundError("Tag", 7)
        assert err.code is ErrorCode.TAG_NOT_FOUND
        assert err.status_code == 404
        assert err.to_dict() == {
            "message": "Tag not found: 7",
            "code": "TAG_NOT_FOUND",
            "details": {"entity": "Tag", "id": 7},
        }

    def test_unknown_entity_uses_generic_code(self) -> None:
        err = NotFoundError("Widget", 1)
        assert err.code is ErrorCode.NOT_FOUND
        assert isinstance(err, LookupError)


def test_status_codes() -> None:
    assert ValidationError("bad").status_code == 400
    assert InternalError("boom").status_code == 500
    assert "details" not in ValidationError("bad").to_dict()
