"""Module search orchestration."""
