"""Milan - run local scripts on HTTP request from allowed IPs."""

__version__ = "1.0.0"
