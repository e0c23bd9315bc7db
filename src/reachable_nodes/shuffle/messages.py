"""Wire format for shuffled round messages.

Each message starts with a one-byte tag: ``P`` for a distance proposal
(target:int32, distance:int32), ``N`` for a structure message followed by the
encoded node record.
"""

import struct
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from reachable_nodes.errors import CorruptRecord
from reachable_nodes.node.codec import HEADER, NEIGHBOR_SIZE, decode, decode_header, encode
from reachable_nodes.node.types import Message, NodeRecord, Proposal
from reachable_nodes.shuffle.types import BUFFER_SIZE

PROPOSAL_TAG = b"P"
STRUCTURE_TAG = b"N"

PROPOSAL = struct.Struct(">ii")


def message_target(message: Message) -> int:
    """Node id a message is routed to."""
    if isinstance(message, NodeRecord):
        return message.node_id
    return message.target


def encode_message(message: Message) -> bytes:
    if isinstance(message, NodeRecord):
        return STRUCTURE_TAG + encode(message)
    return PROPOSAL_TAG + PROPOSAL.pack(message.target, message.distance)


def read_messages(handle: BinaryIO) -> Iterator[Message]:
    """Stream messages from a shuffle file handle."""
    while True:
        tag = handle.read(1)
        if not tag:
            return

        if tag == PROPOSAL_TAG:
            body = handle.read(PROPOSAL.size)
            if len(body) < PROPOSAL.size:
                raise CorruptRecord(f"truncated proposal: {len(body)} of {PROPOSAL.size} bytes")
            yield Proposal(*PROPOSAL.unpack(body))
        elif tag == STRUCTURE_TAG:
            header = handle.read(HEADER.size)
            _, _, count = decode_header(header)
            yield decode(header + handle.read(count * NEIGHBOR_SIZE))
        else:
            raise CorruptRecord(f"unknown message tag {tag!r}")


def iter_shuffle_file(path: str | Path) -> Iterator[Message]:
    with open(path, "rb", buffering=BUFFER_SIZE) as handle:
        yield from read_messages(handle)
