"""PowerShell adapters — PowerShellGet module management."""

from modsync.adapters.powershell.powershellget import PowerShellGetAdapter

__all__ = ["PowerShellGetAdapter"]
