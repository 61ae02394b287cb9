"""API authentication using API keys"""
import logging
import secrets
from fastapi import Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from src import config
from src.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify the bearer API key against API_KEYS

    Returns:
        The verified API key

    Raises:
        ConfigurationError: No API keys configured (503)
        AuthenticationError: Missing or unknown key (401)
    """
    valid_keys = config.API_KEYS
    if not valid_keys:
        raise ConfigurationError("No API keys configured - rejecting all requests", config_key="API_KEYS")

    if credentials is None:
        raise AuthenticationError("Missing bearer token", operation="verify_api_key")

    api_key = credentials.credentials
    if not any(secrets.compare_digest(api_key, key) for key in valid_keys):
        raise AuthenticationError(f"Invalid API key attempt: {api_key[:6]}...", operation="verify_api_key")

    logger.debug(f"API key validated: {api_key[:6]}...")
    return api_key
