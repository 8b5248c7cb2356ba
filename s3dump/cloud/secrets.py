# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cloud session and credential bundle retrieval.

Credentials for the object storage are not part of the process
environment: they are read from a managed secret store on every request,
using the ambient identity of the runtime.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict

import structlog
from aiobotocore.session import AioSession, get_session
from botocore.exceptions import BotoCoreError, ClientError

from s3dump.config import DumpConfig
from s3dump.errors import explain_invalid_secret_payload
from s3dump.exceptions import SecretsError, SessionError

logger = structlog.get_logger()


@dataclass(frozen=True)
class CredentialBundle:
    """
    Key/value payload of a secret.

    Values are excluded from repr so the bundle never leaks into logs.
    """

    secret_id: str
    version_id: str | None
    values: Dict[str, str] = field(default_factory=dict, repr=False)

    def get(self, name: str) -> str | None:
        return self.values.get(name)


async def create_session() -> AioSession:
    """
    Create a cloud session bound to the ambient identity.

    The credential chain is resolved here so that a runtime without an
    identity fails at this step rather than at the first service call.

    Raises:
        SessionError: If no credentials can be resolved
    """
    try:
        session = get_session()
        credentials = await session.get_credentials()
    except BotoCoreError as e:
        raise SessionError(f"Failed to initialize cloud session: {e}") from e

    if credentials is None:
        raise SessionError("Failed to initialize cloud session: no credentials found")

    return session


def parse_secret_payload(secret_id: str, payload: str | None) -> Dict[str, str]:
    """Parse a SecretString holding a JSON object of string values."""
    try:
        data = json.loads(payload or "")
    except ValueError as e:
        raise SecretsError(
            explain_invalid_secret_payload(secret_id),
            details={"secret_id": secret_id},
        ) from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise SecretsError(
            explain_invalid_secret_payload(secret_id),
            details={"secret_id": secret_id},
        )

    return data


async def fetch_credential_bundle(session: Any, config: DumpConfig) -> CredentialBundle:
    """
    Retrieve the credential bundle for the configured secret.

    Args:
        session: aiobotocore session
        config: Dump configuration (secret id, region, endpoint)

    Returns:
        CredentialBundle with the secret's entries

    Raises:
        SecretsError: If the secret cannot be read or parsed
    """
    try:
        async with session.create_client(
            "secretsmanager",
            region_name=config.region,
            endpoint_url=config.secrets_endpoint_url,
        ) as client:
            response = await client.get_secret_value(SecretId=config.secret_id)
    except (BotoCoreError, ClientError, ValueError) as e:
        raise SecretsError(
            f"Failed to get secret: {e}",
            details={"secret_id": config.secret_id},
        ) from e

    values = parse_secret_payload(config.secret_id, response.get("SecretString"))
    version_id = response.get("VersionId")

    logger.info(
        "secret_retrieved",
        secret_id=config.secret_id,
        version_id=version_id,
        entries=len(values),
    )

    return CredentialBundle(
        secret_id=config.secret_id,
        version_id=version_id,
        values=values,
    )
