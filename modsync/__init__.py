"""modsync — keep PowerShell modules in step with a trusted gallery."""

__version__ = "0.1.0"
