"""Shared fixtures for the almrest test suite."""
