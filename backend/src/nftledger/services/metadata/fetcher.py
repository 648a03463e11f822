"""Token metadata document fetcher.

Resolves token URIs to JSON documents:
- ipfs://<cid>[/path] via the configured IPFS gateway
- ar://<tx id> via the configured Arweave gateway
- http(s):// URLs directly
- data:application/json[;base64],... decoded locally
"""

import base64
import binascii
import json
from typing import Any
from urllib.parse import unquote

import httpx

from nftledger.services.exceptions import MetadataFetchError, MetadataParseError


class MetadataFetcher:
    """Fetch and parse ERC-721 metadata JSON documents."""

    def __init__(
        self,
        ipfs_gateway: str = "https://ipfs.io",
        arweave_gateway: str = "https://arweave.net",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize metadata fetcher.

        Args:
            ipfs_gateway: Base URL of the IPFS HTTP gateway (default: public gateway)
            arweave_gateway: Base URL of the Arweave gateway
            timeout: Request timeout in seconds (default: 10)
            transport: Optional httpx transport (used by tests to stub responses)
        """
        self.ipfs_gateway = ipfs_gateway.rstrip("/")
        self.arweave_gateway = arweave_gateway.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def resolve_url(self, uri: str) -> str:
        """Convert a token URI to a fetchable HTTP(S) URL.

        Args:
            uri: Token URI as returned by tokenURI()

        Returns:
            HTTP(S) URL of the metadata document

        Raises:
            MetadataParseError: If the URI scheme is not supported
        """
        uri = uri.strip()
        if uri.startswith("ipfs://"):
            path = uri[len("ipfs://") :]
            if path.startswith("ipfs/"):
                path = path[len("ipfs/") :]
            return f"{self.ipfs_gateway}/ipfs/{path}"
        if uri.startswith("ar://"):
            return f"{self.arweave_gateway}/{uri[len('ar://'):]}"
        if uri.startswith(("http://", "https://")):
            return uri
        raise MetadataParseError(f"Unsupported metadata URI scheme: {uri[:64]}")

    async def fetch(self, uri: str) -> dict[str, Any]:
        """Retrieve and parse the metadata document behind a token URI.

        Args:
            uri: Token URI as returned by tokenURI()

        Returns:
            Parsed JSON object

        Raises:
            MetadataFetchError: Network timeout, rate limit (429), server error (5xx)
            MetadataParseError: Client error (4xx), invalid JSON, non-object document,
                unsupported or malformed URI
        """
        if uri.startswith("data:"):
            return _parse_document(_decode_data_uri(uri))

        url = self.resolve_url(uri)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport, follow_redirects=True
            ) as client:
                response = await client.get(url, headers={"Accept": "application/json"})
        except (httpx.InvalidURL, ValueError) as e:
            raise MetadataParseError(f"Malformed metadata URL {url[:64]}: {str(e)}")
        except httpx.TimeoutException as e:
            raise MetadataFetchError(f"Request timeout after {self.timeout}s: {str(e)}")
        except httpx.HTTPError as e:
            raise MetadataFetchError(f"Network error: {str(e)}")

        # Error classification
        if response.status_code == 429:
            raise MetadataFetchError(f"Rate limit exceeded: {url}")
        elif response.status_code >= 500:
            raise MetadataFetchError(f"Service unavailable ({response.status_code}): {url}")
        elif response.status_code >= 400:
            raise MetadataParseError(f"Metadata not retrievable ({response.status_code}): {url}")

        return _parse_document(response.content)


def _decode_data_uri(uri: str) -> bytes:
    """Decode an RFC 2397 data URI payload."""
    header, sep, payload = uri[len("data:") :].partition(",")
    if not sep:
        raise MetadataParseError("Malformed data URI: missing ',' separator")

    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MetadataParseError(f"Invalid base64 in data URI: {e}")

    return unquote(payload).encode("utf-8")


def _parse_document(raw: bytes) -> dict[str, Any]:
    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MetadataParseError(f"Metadata is not valid JSON: {e}")

    if not isinstance(document, dict):
        raise MetadataParseError(
            f"Metadata must be a JSON object, got {type(document).__name__}"
        )
    return document
