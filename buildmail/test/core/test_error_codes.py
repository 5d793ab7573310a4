"""Tests for buildmail.core.errors module."""

from buildmail.core.errors import ErrorCode


class TestErrorCodeValues:
    """Exit codes are consumed by cron wrappers and must stay stable."""

    def test_values(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.CONFIG_ERROR == 2
        assert ErrorCode.IO_ERROR == 3
        assert ErrorCode.VCS_ERROR == 4
        assert ErrorCode.MAIL_ERROR == 5

    def test_str(self) -> None:
        assert str(ErrorCode.VCS_ERROR) == "vcs error"

    def test_is_error(self) -> None:
        assert ErrorCode.OK.is_error is False
        assert ErrorCode.MAIL_ERROR.is_error is True
