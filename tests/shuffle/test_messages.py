"""Tests for the shuffle message wire format."""

import io

import pytest

from reachable_nodes.errors import CorruptRecord
from reachable_nodes.node.types import SENTINEL, NodeRecord, Proposal
from reachable_nodes.shuffle.messages import encode_message, message_target, read_messages


def test_mixed_message_stream() -> None:
    messages = [Proposal(2, 1), NodeRecord(1, 0, (2, 4)), Proposal(4, 1), NodeRecord(5, SENTINEL)]
    handle = io.BytesIO(b"".join(encode_message(m) for m in messages))

    assert list(read_messages(handle)) == messages


def test_message_target() -> None:
    assert message_target(Proposal(7, 3)) == 7
    assert message_target(NodeRecord(9, 0)) == 9


def test_unknown_tag_is_corrupt() -> None:
    with pytest.raises(CorruptRecord, match="unknown message tag"):
        list(read_messages(io.BytesIO(b"X\x00\x00\x00\x01")))


def test_truncated_proposal_is_corrupt() -> None:
    data = encode_message(Proposal(1, 2))[:-1]
    with pytest.raises(CorruptRecord, match="truncated proposal"):
        list(read_messages(io.BytesIO(data)))
