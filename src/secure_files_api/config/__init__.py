"""
Configuration management for the Secure Files API.

Contains Pydantic settings that work across local-dev, aws-mock, and aws-prod
deployment modes.
"""
