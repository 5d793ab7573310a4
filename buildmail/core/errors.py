"""Process exit codes.

Every command maps its failure to one of these codes so that the cron job
driving the notification run can tell the failure classes apart.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad arguments, unknown changelog name)
    - 2: Config error (missing or invalid config.toml)
    - 3: I/O error (artifact directory unreadable)
    - 4: VCS error (svn failed, build markers missing or malformed)
    - 5: Mail error (SMTP connection, auth or delivery failed)
    """

    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    IO_ERROR = 3
    VCS_ERROR = 4
    MAIL_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
