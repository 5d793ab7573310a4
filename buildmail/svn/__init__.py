"""Subversion log access.

Usage:
    from buildmail.svn import SvnRepository

    repo = SvnRepository("/src/office", timeout=120)
    probe = repo.log(limit=30, search="build")
"""

from buildmail.svn.repository import LogSource, RevisionRange, SvnError, SvnRepository

__all__ = [
    "LogSource",
    "RevisionRange",
    "SvnError",
    "SvnRepository",
]
