"""
AWS Secrets Manager access for the deployed sync job.

The whole configuration is stored as one JSON secret. Credentials for
Secrets Manager itself come from the Lambda execution role.
"""

import json
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

# Name of the secret holding the sync configuration
CONFIG_SECRET = "gsuite-dirsync-config"

logger = logging.getLogger(__name__)


def get_secrets(
    secret_id: str = CONFIG_SECRET, client: Any = None
) -> dict[str, Any] | None:
    """
    Fetch and decode the configuration secret.

    Args:
        secret_id: Secret name or ARN
        client: Optional boto3 secretsmanager client

    Returns:
        Decoded secret dictionary, or None when the secret has no string
        value or does not hold a JSON object

    Raises:
        ClientError: If Secrets Manager rejects the request
        BotoCoreError: If Secrets Manager cannot be reached
    """
    if client is None:
        client = boto3.client("secretsmanager")

    try:
        response = client.get_secret_value(SecretId=secret_id)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Failed to read secret {secret_id}: {e}")
        raise

    secret_string = response.get("SecretString")
    if not secret_string:
        logger.warning(f"Secret {secret_id} has no string value")
        return None

    try:
        data = json.loads(secret_string)
    except json.JSONDecodeError:
        logger.warning(f"Secret {secret_id} is not valid JSON")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Secret {secret_id} does not contain a JSON object")
        return None

    return data
