"""
Adapter layer for the Secure Files API.

Contains the encryption client (KMS envelope encryption) and blob storage
(local/S3). Provides mode-aware implementations that work across deployment
environments.
"""
