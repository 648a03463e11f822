"""Metadata fetcher and enricher tests.

Tests cover:
- Token URI to gateway URL resolution
- data: URI decoding
- HTTP error classification (transient vs permanent)
- Document to TokenMetadata mapping
- Enrichment attached to tokens on transfer, and failures that must not block it
"""

import base64
import json
from unittest.mock import Mock

import httpx
import pytest

from nftledger.services.blockchain.chain_reader import CallResult, ChainReader
from nftledger.services.exceptions import (
    BlockchainConnectionError,
    MetadataFetchError,
    MetadataParseError,
)
from nftledger.services.ledger.events import ZERO_ADDRESS
from nftledger.services.ledger.processor import EventProcessor
from nftledger.services.metadata.enricher import MetadataEnricher
from nftledger.services.metadata.fetcher import MetadataFetcher

CONTRACT = "0x5fbdb2315678afecb367f032d93f642f64180aa3"
X = "0x1111111111111111111111111111111111111111"
CID = "bafkreibm6jg3ux5qumhcn2b3flc3tyu6dmlb4xa7u5bf44yegnrjhc4yeq"

DOCUMENT = {
    "name": "Ledger #1",
    "description": "First token",
    "image": f"ipfs://{CID}/1.png",
    "external_url": "https://example.org/1",
    "attributes": [
        {"trait_type": "Background", "value": "Blue"},
        {"trait_type": "Level", "value": 3, "display_type": "number"},
        {"trait_type": "Broken"},
        "not-a-trait",
    ],
}


def json_transport(payload, status_code=200, seen=None):
    """httpx transport answering every request with the same response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status_code, content=payload)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


class TestResolveUrl:
    def setup_method(self):
        self.fetcher = MetadataFetcher(
            ipfs_gateway="https://gateway.test/", arweave_gateway="https://ar.test"
        )

    def test_ipfs_uri(self):
        assert self.fetcher.resolve_url(f"ipfs://{CID}/1.json") == (
            f"https://gateway.test/ipfs/{CID}/1.json"
        )

    def test_ipfs_uri_with_redundant_prefix(self):
        assert self.fetcher.resolve_url(f"ipfs://ipfs/{CID}") == f"https://gateway.test/ipfs/{CID}"

    def test_arweave_uri(self):
        assert self.fetcher.resolve_url("ar://abc123") == "https://ar.test/abc123"

    def test_http_uri_passes_through(self):
        assert self.fetcher.resolve_url("https://api.test/token/1") == "https://api.test/token/1"

    def test_unsupported_scheme(self):
        with pytest.raises(MetadataParseError, match="Unsupported"):
            self.fetcher.resolve_url("ftp://files.test/1.json")


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetches_through_gateway(self):
        seen = []
        fetcher = MetadataFetcher(
            ipfs_gateway="https://gateway.test", transport=json_transport(DOCUMENT, seen=seen)
        )

        document = await fetcher.fetch(f"ipfs://{CID}")

        assert document["name"] == "Ledger #1"
        assert seen == [f"https://gateway.test/ipfs/{CID}"]

    @pytest.mark.asyncio
    async def test_base64_data_uri(self):
        encoded = base64.b64encode(json.dumps({"name": "On-chain"}).encode()).decode()
        fetcher = MetadataFetcher()

        document = await fetcher.fetch(f"data:application/json;base64,{encoded}")

        assert document == {"name": "On-chain"}

    @pytest.mark.asyncio
    async def test_plain_data_uri(self):
        fetcher = MetadataFetcher()

        document = await fetcher.fetch('data:application/json,{"name":"Plain%20text"}')

        assert document == {"name": "Plain text"}

    @pytest.mark.asyncio
    async def test_invalid_base64_data_uri(self):
        with pytest.raises(MetadataParseError, match="base64"):
            await MetadataFetcher().fetch("data:application/json;base64,***")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [429, 500, 503])
    async def test_transient_http_errors(self, status_code):
        fetcher = MetadataFetcher(transport=json_transport({}, status_code=status_code))

        with pytest.raises(MetadataFetchError):
            await fetcher.fetch("https://api.test/token/1")

    @pytest.mark.asyncio
    async def test_not_found_is_permanent(self):
        fetcher = MetadataFetcher(transport=json_transport({}, status_code=404))

        with pytest.raises(MetadataParseError, match="404"):
            await fetcher.fetch("https://api.test/token/1")

    @pytest.mark.asyncio
    async def test_invalid_json_is_permanent(self):
        fetcher = MetadataFetcher(transport=json_transport(b"<html>oops</html>"))

        with pytest.raises(MetadataParseError, match="not valid JSON"):
            await fetcher.fetch("https://api.test/token/1")

    @pytest.mark.asyncio
    async def test_non_object_document_is_permanent(self):
        fetcher = MetadataFetcher(transport=json_transport(["a", "b"]))

        with pytest.raises(MetadataParseError, match="JSON object"):
            await fetcher.fetch("https://api.test/token/1")

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = MetadataFetcher(transport=httpx.MockTransport(handler))

        with pytest.raises(MetadataFetchError, match="Network error"):
            await fetcher.fetch("https://api.test/token/1")

    @pytest.mark.asyncio
    async def test_malformed_url_is_permanent(self):
        fetcher = MetadataFetcher(transport=json_transport(DOCUMENT))

        with pytest.raises(MetadataParseError):
            await fetcher.fetch("http://[::1/x")


def make_reader(token_uri: CallResult) -> Mock:
    reader = Mock(spec=ChainReader)
    reader.try_call.return_value = token_uri
    return reader


class TestEnricher:
    def test_token_uri_revert(self):
        enricher = MetadataEnricher(make_reader(CallResult.revert()))

        assert enricher.fetch_token_uri(CONTRACT, 1) is None

    def test_empty_token_uri(self):
        enricher = MetadataEnricher(make_reader(CallResult.ok("")))

        assert enricher.fetch_token_uri(CONTRACT, 1) is None

    def test_token_uri_connection_error(self):
        reader = Mock(spec=ChainReader)
        reader.try_call.side_effect = BlockchainConnectionError("timeout")

        assert MetadataEnricher(reader).fetch_token_uri(CONTRACT, 1) is None

    def test_token_uri_value(self):
        reader = make_reader(CallResult.ok("ipfs://cid/1"))

        assert MetadataEnricher(reader).fetch_token_uri(CONTRACT, 1) == "ipfs://cid/1"
        reader.try_call.assert_called_once_with(CONTRACT, "tokenURI", 1)

    @pytest.mark.asyncio
    async def test_without_fetcher_returns_none(self):
        enricher = MetadataEnricher(make_reader(CallResult.ok("ipfs://cid/1")))

        assert await enricher.resolve_metadata("ipfs://cid/1", f"{CONTRACT}-1") is None

    @pytest.mark.asyncio
    async def test_maps_document_fields(self):
        fetcher = MetadataFetcher(transport=json_transport(DOCUMENT))
        enricher = MetadataEnricher(make_reader(CallResult.revert()), fetcher)

        metadata = await enricher.resolve_metadata("https://api.test/1", f"{CONTRACT}-1")

        assert metadata.id == f"{CONTRACT}-1-metadata"
        assert metadata.token == f"{CONTRACT}-1"
        assert metadata.uri == "https://api.test/1"
        assert metadata.name == "Ledger #1"
        assert metadata.image == f"ipfs://{CID}/1.png"
        assert metadata.attributes == [
            {"trait_type": "Background", "value": "Blue"},
            {"trait_type": "Level", "value": 3, "display_type": "number"},
        ]

    @pytest.mark.asyncio
    async def test_partial_document_leaves_fields_unset(self):
        fetcher = MetadataFetcher(transport=json_transport({"image_url": "https://img.test/1"}))
        enricher = MetadataEnricher(make_reader(CallResult.revert()), fetcher)

        metadata = await enricher.resolve_metadata("https://api.test/1", f"{CONTRACT}-1")

        assert metadata.image == "https://img.test/1"
        assert metadata.name is None
        assert metadata.description is None
        assert metadata.attributes is None

    @pytest.mark.asyncio
    async def test_document_without_known_fields(self):
        fetcher = MetadataFetcher(transport=json_transport({"foo": "bar"}))
        enricher = MetadataEnricher(make_reader(CallResult.revert()), fetcher)

        assert await enricher.resolve_metadata("https://api.test/1", f"{CONTRACT}-1") is None

    @pytest.mark.asyncio
    async def test_fetch_failure_returns_none(self):
        fetcher = MetadataFetcher(transport=json_transport({}, status_code=502))
        enricher = MetadataEnricher(make_reader(CallResult.revert()), fetcher)

        assert await enricher.resolve_metadata("https://api.test/1", f"{CONTRACT}-1") is None


@pytest.mark.asyncio
async def test_transfer_attaches_metadata(uow_factory, chain_reader, events):
    """tokenURI and a resolvable document give the token a linked TokenMetadata."""
    chain_reader.responses["tokenURI"] = CallResult.ok(f"ipfs://{CID}")
    fetcher = MetadataFetcher(transport=json_transport(DOCUMENT))
    processor = EventProcessor(uow_factory, chain_reader, MetadataEnricher(chain_reader, fetcher))

    await processor.process(events.transfer(ZERO_ADDRESS, X, 1, block_number=100))
    # Second transfer re-resolves and overwrites the stored document
    await processor.process(events.transfer(X, X, 1, block_number=101))

    async with await uow_factory() as uow:
        token = await uow.tokens.get(f"{CONTRACT}-1")
        assert token.token_uri == f"ipfs://{CID}"
        assert token.metadata_id == f"{CONTRACT}-1-metadata"

        metadata = await uow.token_metadata.get(token.metadata_id)
        assert metadata.token == token.id
        assert metadata.name == "Ledger #1"
        assert metadata.external_url == "https://example.org/1"
        assert len(metadata.attributes) == 2


@pytest.mark.asyncio
async def test_metadata_failure_does_not_block_transfer(uow_factory, chain_reader, events):
    """A gateway outage still commits the transfer and records tokenURI."""
    chain_reader.responses["tokenURI"] = CallResult.ok("https://api.test/token/9")
    fetcher = MetadataFetcher(transport=json_transport({}, status_code=503))
    processor = EventProcessor(uow_factory, chain_reader, MetadataEnricher(chain_reader, fetcher))
    mint = events.transfer(ZERO_ADDRESS, X, 9)

    assert await processor.process(mint) is True

    async with await uow_factory() as uow:
        token = await uow.tokens.get(f"{CONTRACT}-9")
        assert token.token_uri == "https://api.test/token/9"
        assert token.metadata_id is None
        assert token.owner == X
        assert await uow.transfers.get(mint.context.log_id) is not None


@pytest.mark.asyncio
async def test_malformed_token_uri_does_not_block_transfer(uow_factory, chain_reader, events):
    """A tokenURI that is not a valid URL is recorded, and the transfer still commits."""
    chain_reader.responses["tokenURI"] = CallResult.ok("http://[::1/x")
    fetcher = MetadataFetcher(transport=json_transport(DOCUMENT))
    processor = EventProcessor(uow_factory, chain_reader, MetadataEnricher(chain_reader, fetcher))
    mint = events.transfer(ZERO_ADDRESS, X, 11)

    assert await processor.process(mint) is True

    async with await uow_factory() as uow:
        token = await uow.tokens.get(f"{CONTRACT}-11")
        assert token.token_uri == "http://[::1/x"
        assert token.metadata_id is None
        assert token.owner == X
        assert await uow.transfers.get(mint.context.log_id) is not None
