"""Host metric collectors reading procfs, sysfs and caller-supplied sources."""

__version__ = "0.1.0"