"""Thin CRUD helpers around the boto3 S3 client."""
