"""Secure Files API: encrypt uploaded files before they reach object storage."""
