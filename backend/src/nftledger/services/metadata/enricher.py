"""Best-effort token metadata enrichment.

Failures here never block or roll back the transfer being processed: every
error is logged and turned into None, and the next transfer of the token retries.
"""

from typing import Any

import structlog

from nftledger.models.token import TokenMetadata
from nftledger.services.blockchain.chain_reader import ChainReader
from nftledger.services.exceptions import BlockchainConnectionError, MetadataError
from nftledger.services.ledger.events import metadata_key
from nftledger.services.metadata.fetcher import MetadataFetcher

logger = structlog.get_logger()


class MetadataEnricher:
    """Resolves tokenURI and the metadata document it points to."""

    def __init__(self, chain_reader: ChainReader, fetcher: MetadataFetcher | None = None):
        """Initialize enricher.

        Args:
            chain_reader: Reader used for tokenURI() calls
            fetcher: Metadata document fetcher; None disables document resolution
        """
        self.chain_reader = chain_reader
        self.fetcher = fetcher

    def fetch_token_uri(self, contract_address: str, token_id: int) -> str | None:
        """Read tokenURI(tokenId) from the contract.

        Returns:
            The URI, or None if the call reverted, returned an empty string or
            the RPC endpoint could not be reached
        """
        try:
            result = self.chain_reader.try_call(contract_address, "tokenURI", token_id)
        except BlockchainConnectionError as e:
            logger.warning(
                "metadata.token_uri_unavailable",
                contract=contract_address,
                token_id=token_id,
                error=str(e),
            )
            return None

        if result.reverted or not result.value:
            return None
        return str(result.value)

    async def resolve_metadata(self, uri: str, token_key: str) -> TokenMetadata | None:
        """Build a TokenMetadata record from the document behind uri.

        Fields missing from the document are left unset. A document carrying none
        of the known fields, or one that cannot be fetched or parsed, yields None.

        Args:
            uri: Token URI returned by tokenURI()
            token_key: Key of the owning Token

        Returns:
            Unsaved TokenMetadata, or None
        """
        if self.fetcher is None:
            return None

        try:
            document = await self.fetcher.fetch(uri)
        except MetadataError as e:
            logger.warning(
                "metadata.fetch_failed",
                token=token_key,
                uri=uri[:256],
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        fields = {
            "name": _text(document.get("name")),
            "description": _text(document.get("description")),
            "image": _text(document.get("image") or document.get("image_url")),
            "external_url": _text(document.get("external_url")),
            "attributes": _attributes(document.get("attributes")),
        }
        if all(value is None for value in fields.values()):
            logger.info("metadata.empty_document", token=token_key, uri=uri[:256])
            return None

        return TokenMetadata(id=metadata_key(token_key), token=token_key, uri=uri, **fields)


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _attributes(value: Any) -> list[dict[str, Any]] | None:
    """Keep well-formed OpenSea-style trait entries, dropping anything else."""
    if not isinstance(value, list):
        return None

    attributes = []
    for entry in value:
        if not isinstance(entry, dict) or "value" not in entry:
            continue
        trait: dict[str, Any] = {
            "trait_type": _text(entry.get("trait_type")),
            "value": entry["value"],
        }
        if entry.get("display_type") is not None:
            trait["display_type"] = _text(entry.get("display_type"))
        attributes.append(trait)

    return attributes or None
