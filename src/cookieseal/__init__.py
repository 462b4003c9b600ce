"""cookieseal: tamper-evident, time-bounded signed session cookies."""

__version__ = "0.1.0"
