"""Policy loading and enforcement."""
