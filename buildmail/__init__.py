"""buildmail - release notification mails for nightly build drops."""

__version__ = "0.1.0"
