"""
Tests for the entries service client.

Each test starts an in-process gRPC server implementing ``entries.Entries``
and points the client at it.
"""

import grpc
import pytest

from mentor_gateway.entries import (
    SERVICE_NAME,
    CreateEntryRequest,
    Entry,
    EntriesClient,
    ListEntriesRequest,
    ListEntriesResponse,
)
from mentor_gateway.errors import EntriesServiceError
from mentor_gateway.models import StoredEntry


class TestEntriesClient:
    def setup_method(self):
        self.limits: list[int] = []
        self.texts: list[str] = []
        self.rows = [
            Entry(id="1", text="Sunny walk", created_at="2026-10-18"),
            Entry(id="2", text="Tea"),
        ]

    async def _list_entries(self, request, context):
        self.limits.append(request.limit)
        return ListEntriesResponse(entries=self.rows[: request.limit])

    async def _create_entry(self, request, context):
        if not request.text:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "text is required")
        self.texts.append(request.text)
        return Entry(id="9", text=request.text, created_at="now")

    async def _start_server(self) -> tuple[grpc.aio.Server, str]:
        handlers = {
            "ListEntries": grpc.unary_unary_rpc_method_handler(
                self._list_entries,
                request_deserializer=ListEntriesRequest.FromString,
                response_serializer=ListEntriesResponse.SerializeToString,
            ),
            "CreateEntry": grpc.unary_unary_rpc_method_handler(
                self._create_entry,
                request_deserializer=CreateEntryRequest.FromString,
                response_serializer=Entry.SerializeToString,
            ),
        }
        server = grpc.aio.server()
        server.add_generic_rpc_handlers(
            (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
        )
        port = server.add_insecure_port("127.0.0.1:0")
        await server.start()
        return server, f"127.0.0.1:{port}"

    async def test_list_entries(self):
        server, target = await self._start_server()
        client = EntriesClient(target, timeout=5.0)
        try:
            rows = await client.list_entries(25)
        finally:
            await client.aclose()
            await server.stop(None)

        assert rows == [
            StoredEntry(id="1", text="Sunny walk", created_at="2026-10-18"),
            StoredEntry(id="2", text="Tea", created_at=None),
        ]
        assert self.limits == [25]

    async def test_create_entry(self):
        server, target = await self._start_server()
        client = EntriesClient(target, timeout=5.0)
        try:
            entry = await client.create_entry("Grateful for rain")
        finally:
            await client.aclose()
            await server.stop(None)

        assert entry == StoredEntry(id="9", text="Grateful for rain", created_at="now")
        assert self.texts == ["Grateful for rain"]

    async def test_service_error_details(self):
        server, target = await self._start_server()
        client = EntriesClient(target, timeout=5.0)
        try:
            with pytest.raises(EntriesServiceError) as info:
                await client.create_entry("")
        finally:
            await client.aclose()
            await server.stop(None)

        assert info.value.message == "text is required"

    async def test_unreachable_service(self):
        server, target = await self._start_server()
        await server.stop(None)

        client = EntriesClient(target, timeout=2.0)
        try:
            with pytest.raises(EntriesServiceError) as info:
                await client.list_entries(5)
        finally:
            await client.aclose()
        assert info.value.message

    async def test_aclose_without_calls(self):
        client = EntriesClient("127.0.0.1:1")
        await client.aclose()
