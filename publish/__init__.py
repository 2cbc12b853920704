"""Headless publishing API."""
