"""Configuration — modsync.yml loading."""
