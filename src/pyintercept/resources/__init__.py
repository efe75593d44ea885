"""Packaged resource files for pyintercept."""
