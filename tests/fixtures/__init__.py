"""Shared fixtures for multirustkit tests."""
