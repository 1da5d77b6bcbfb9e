"""
Client for the entries service.

The entries service owns journal entry persistence and is reached over gRPC::

    package entries;

    service Entries {
      rpc ListEntries (ListEntriesRequest) returns (ListEntriesResponse);
      rpc CreateEntry (CreateEntryRequest) returns (Entry);
    }

    message Entry { string id = 1; string text = 2; string created_at = 3; }
    message ListEntriesRequest { int32 limit = 1; }
    message ListEntriesResponse { repeated Entry entries = 1; }
    message CreateEntryRequest { string text = 1; }

The message classes are built at import time from this contract through the
protobuf descriptor pool, so no generated modules are needed.
"""

import logging

import grpc
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from .errors import EntriesServiceError
from .models import StoredEntry

logger = logging.getLogger(__name__)

SERVICE_NAME = "entries.Entries"

_Field = descriptor_pb2.FieldDescriptorProto


def _build_messages() -> dict[str, type]:
    """Register the entries contract in a private pool and return its message classes."""
    proto = descriptor_pb2.FileDescriptorProto(
        name="entries.proto", package="entries", syntax="proto3"
    )

    def message(name: str, *fields: tuple) -> None:
        descriptor = proto.message_type.add(name=name)
        for field_name, number, field_type, label, type_name in fields:
            field = descriptor.field.add(
                name=field_name, number=number, type=field_type, label=label
            )
            if type_name:
                field.type_name = type_name

    optional, repeated = _Field.LABEL_OPTIONAL, _Field.LABEL_REPEATED
    message(
        "Entry",
        ("id", 1, _Field.TYPE_STRING, optional, None),
        ("text", 2, _Field.TYPE_STRING, optional, None),
        ("created_at", 3, _Field.TYPE_STRING, optional, None),
    )
    message("ListEntriesRequest", ("limit", 1, _Field.TYPE_INT32, optional, None))
    message(
        "ListEntriesResponse",
        ("entries", 1, _Field.TYPE_MESSAGE, repeated, ".entries.Entry"),
    )
    message("CreateEntryRequest", ("text", 1, _Field.TYPE_STRING, optional, None))

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(proto.SerializeToString())
    return {
        name: message_factory.GetMessageClass(pool.FindMessageTypeByName(f"entries.{name}"))
        for name in ("Entry", "ListEntriesRequest", "ListEntriesResponse", "CreateEntryRequest")
    }


_MESSAGES = _build_messages()
Entry = _MESSAGES["Entry"]
ListEntriesRequest = _MESSAGES["ListEntriesRequest"]
ListEntriesResponse = _MESSAGES["ListEntriesResponse"]
CreateEntryRequest = _MESSAGES["CreateEntryRequest"]


def _stored_entry(message) -> StoredEntry:
    return StoredEntry(
        id=message.id or None,
        text=message.text,
        created_at=message.created_at or None,
    )


class EntriesClient:
    """
    Async gRPC client for the entries service.

    The insecure channel to ``target`` (``host:port``) is opened on first use
    and closed by ``aclose``.
    """

    def __init__(self, target: str, *, timeout: float = 10.0) -> None:
        self.target = target
        self._timeout = timeout
        self._channel: grpc.aio.Channel | None = None

    def _method(self, name: str, request_type: type, response_type: type):
        if self._channel is None:
            self._channel = grpc.aio.insecure_channel(self.target)
        return self._channel.unary_unary(
            f"/{SERVICE_NAME}/{name}",
            request_serializer=request_type.SerializeToString,
            response_deserializer=response_type.FromString,
        )

    async def _call(self, name: str, request, response_type: type):
        method = self._method(name, type(request), response_type)
        try:
            return await method(request, timeout=self._timeout)
        except grpc.aio.AioRpcError as e:
            logger.warning("Entries service %s failed with %s", name, e.code().name)
            raise EntriesServiceError(
                e.details() or f"entries service {name} failed with {e.code().name}"
            ) from e

    async def list_entries(self, limit: int) -> list[StoredEntry]:
        """
        List the most recent entries.

        Raises:
            EntriesServiceError: when the service fails or cannot be reached
        """
        response = await self._call(
            "ListEntries", ListEntriesRequest(limit=limit), ListEntriesResponse
        )
        return [_stored_entry(entry) for entry in response.entries]

    async def create_entry(self, text: str) -> StoredEntry:
        """
        Store a new entry and return it as the service saved it.

        Raises:
            EntriesServiceError: when the service rejects the entry or fails
        """
        entry = await self._call("CreateEntry", CreateEntryRequest(text=text), Entry)
        return _stored_entry(entry)

    async def aclose(self) -> None:
        if self._channel is not None:
            await self._channel.close()
            self._channel = None
