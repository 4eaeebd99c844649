"""Credential storage, AWS CLI profile discovery and credential resolution."""
from lambda_file_deployer.credentials.models import Credentials
from lambda_file_deployer.credentials.resolver import CredentialResolver, CredentialStatus
from lambda_file_deployer.credentials.store import CredentialStore

__all__ = ["Credentials", "CredentialResolver", "CredentialStatus", "CredentialStore"]
