"""Engine — planning and the per-package synchronization loop."""
