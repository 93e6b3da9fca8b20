"""
Automaton Codec

Compact binary form of an Automaton for offline storage.

Layout (little-endian):
    header:   magic b"GATM", u16 version, u32 state count, u32 start state
    per state: u32 edge count
    per edge:  u32 terminal length, terminal bytes, u32 target state

Decoding walks the buffer with offsets and never builds an intermediate
representation.
"""

import logging
import os
import struct
from typing import BinaryIO, List, Union

from gramaton.automaton.automaton import Automaton, AutomatonState, OutEdge
from gramaton.errors import CodecError


logger = logging.getLogger("gramaton.automaton.codec")

MAGIC = b"GATM"
FORMAT_VERSION = 1

_HEADER = struct.Struct("<4sHII")
_U32 = struct.Struct("<I")


def encode(automaton: Automaton) -> bytes:
    """Serialize an automaton to bytes."""
    parts = [_HEADER.pack(MAGIC, FORMAT_VERSION, len(automaton), automaton.start)]
    for state in automaton.states:
        parts.append(_U32.pack(len(state.edges)))
        for edge in state.edges:
            parts.append(_U32.pack(len(edge.terminal)))
            parts.append(edge.terminal)
            parts.append(_U32.pack(edge.target))
    return b"".join(parts)


def decode(data: Union[bytes, bytearray, memoryview]) -> Automaton:
    """
    Deserialize an automaton.

    Args:
        data: Encoded automaton

    Returns:
        Automaton

    Raises:
        CodecError: Bad magic, unsupported version, truncated or trailing
            data, an out-of-range state index or an unreachable state
    """
    view = memoryview(data)
    if len(view) < _HEADER.size:
        raise CodecError(f"Truncated header: {len(view)} bytes")

    magic, version, count, start = _HEADER.unpack_from(view, 0)
    _check_header(magic, version, count, start)
    offset = _HEADER.size

    states: List[AutomatonState] = []
    try:
        for index in range(count):
            (edge_count,) = _U32.unpack_from(view, offset)
            offset += _U32.size
            edges = []
            for _ in range(edge_count):
                (length,) = _U32.unpack_from(view, offset)
                offset += _U32.size
                end = offset + length
                if end > len(view):
                    raise CodecError(f"Truncated terminal in state {index}")
                terminal = bytes(view[offset:end])
                (target,) = _U32.unpack_from(view, end)
                offset = end + _U32.size
                if target >= count:
                    raise CodecError(f"State {index} has edge to missing state {target}")
                edges.append(OutEdge(terminal, target))
            states.append(AutomatonState(index, tuple(edges)))
    except struct.error as e:
        raise CodecError(f"Truncated automaton data at offset {offset}: {e}")

    if offset != len(view):
        raise CodecError(f"{len(view) - offset} trailing bytes after automaton")

    return _assemble(start, states)


def write(automaton: Automaton, stream: BinaryIO) -> int:
    """
    Write an automaton to a binary stream.

    Returns:
        Number of bytes written
    """
    data = encode(automaton)
    stream.write(data)
    return len(data)


def read(stream: BinaryIO) -> Automaton:
    """
    Read one automaton from a binary stream, state by state.

    Stops right after the last edge, so several automata can share a stream.
    """
    magic, version, count, start = _HEADER.unpack(_read_exact(stream, _HEADER.size))
    _check_header(magic, version, count, start)

    states = []
    for index in range(count):
        (edge_count,) = _U32.unpack(_read_exact(stream, _U32.size))
        edges = []
        for _ in range(edge_count):
            (length,) = _U32.unpack(_read_exact(stream, _U32.size))
            terminal = _read_exact(stream, length)
            (target,) = _U32.unpack(_read_exact(stream, _U32.size))
            if target >= count:
                raise CodecError(f"State {index} has edge to missing state {target}")
            edges.append(OutEdge(terminal, target))
        states.append(AutomatonState(index, tuple(edges)))

    return _assemble(start, states)


def dump(automaton: Automaton, path: str) -> None:
    """Save an automaton to a file."""
    path = os.path.expanduser(path)
    with open(path, "wb") as f:
        size = write(automaton, f)
    logger.info(f"Saved automaton ({len(automaton)} states, {size} bytes) to {path}")


def load(path: str) -> Automaton:
    """Load an automaton from a file."""
    path = os.path.expanduser(path)
    with open(path, "rb") as f:
        automaton = decode(f.read())
    logger.debug(f"Loaded automaton with {len(automaton)} states from {path}")
    return automaton


def _check_header(magic: bytes, version: int, count: int, start: int):
    if magic != MAGIC:
        raise CodecError(f"Bad magic {magic!r}, expected {MAGIC!r}")
    if version != FORMAT_VERSION:
        raise CodecError(f"Unsupported format version {version}")
    if count == 0:
        raise CodecError("Automaton has no states")
    if start >= count:
        raise CodecError(f"Start state {start} out of range for {count} states")


def _assemble(start: int, states: List[AutomatonState]) -> Automaton:
    try:
        return Automaton(start, states)
    except ValueError as e:
        raise CodecError(str(e)) from e


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise CodecError(f"Unexpected end of stream: wanted {size} bytes, got {len(data)}")
    return data
