"""Shared Last.fm test fixtures."""
