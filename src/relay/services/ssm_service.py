"""Secret lookup in AWS SSM Parameter Store.

The relay reads at most a handful of SecureStrings at startup, so they are
fetched with a single GetParameters call and kept on the instance.
"""

import logging
from collections.abc import Iterable
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# GetParameters accepts at most this many names per call
MAX_NAMES_PER_CALL = 10


class SSMServiceError(Exception):
    """Raised when Parameter Store cannot be queried."""

    pass


class SSMService:
    """Batch reader for SecureString parameters.

    Usage:
        ssm = SSMService(region="eu-west-1")
        found = ssm.get_secrets(["/checkout-relay/prod/stripe/secret_key"])
    """

    def __init__(self, region: str | None = None, client=None) -> None:
        self._client = client or boto3.client("ssm", region_name=region)
        self._secrets: dict[str, str] = {}

    def get_secrets(self, names: Iterable[str]) -> dict[str, str]:
        """Fetch decrypted values for the given parameter names.

        Names Parameter Store does not know are left out of the result;
        the caller decides whether that is fatal.

        Args:
            names: Full parameter paths.

        Returns:
            Mapping of parameter name to value for every name found.

        Raises:
            SSMServiceError: On access denial, throttling or connection failure.
        """
        wanted = list(dict.fromkeys(names))
        pending = [name for name in wanted if name not in self._secrets]

        for start in range(0, len(pending), MAX_NAMES_PER_CALL):
            self._fetch(pending[start : start + MAX_NAMES_PER_CALL])

        return {name: self._secrets[name] for name in wanted if name in self._secrets}

    def _fetch(self, names: list[str]) -> None:
        logger.info("Fetching %d SSM parameter(s)", len(names))
        try:
            response = self._client.get_parameters(Names=names, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    "Access denied to SSM parameters. Check IAM permissions for ssm:GetParameters."
                ) from e
            raise SSMServiceError(f"SSM GetParameters failed: {error_code}") from e
        except BotoCoreError as e:
            raise SSMServiceError(f"SSM unreachable: {e}") from e

        for parameter in response.get("Parameters", []):
            self._secrets[parameter["Name"]] = parameter["Value"]

        if response.get("InvalidParameters"):
            logger.warning("SSM parameters not found: %s", ", ".join(response["InvalidParameters"]))


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
