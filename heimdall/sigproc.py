"""Reading and writing SIGPROC filterbank and time-series headers."""

from __future__ import annotations

import io
import struct
import warnings
from dataclasses import dataclass
from os import PathLike
from typing import BinaryIO, Sequence, Union

import numpy as np

_MAX_STRING = 80

# Keyword -> (attribute, little-endian struct format) for fixed-size values.
_FIELDS: dict[str, tuple[str, str]] = {
    "az_start": ("az_start", "<d"),
    "za_start": ("za_start", "<d"),
    "src_raj": ("src_raj", "<d"),
    "src_dej": ("src_dej", "<d"),
    "tstart": ("tstart", "<d"),
    "tsamp": ("tsamp", "<d"),
    "period": ("period", "<d"),
    "fch1": ("fch1", "<d"),
    "foff": ("foff", "<d"),
    "nchans": ("nchans", "<i"),
    "telescope_id": ("telescope_id", "<i"),
    "machine_id": ("machine_id", "<i"),
    "data_type": ("data_type", "<i"),
    "ibeam": ("ibeam", "<i"),
    "nbeams": ("nbeams", "<i"),
    "nbits": ("nbits", "<i"),
    "barycentric": ("barycentric", "<i"),
    "pulsarcentric": ("pulsarcentric", "<i"),
    "nbins": ("nbins", "<i"),
    "nsamples": ("nsamples", "<i"),
    "nifs": ("nifs", "<i"),
    "npuls": ("npuls", "<i"),
    "refdm": ("refdm", "<d"),
    "signed": ("signed_data", "<B"),
}


@dataclass
class SigprocHeader:
    """Values found in a SIGPROC header; ``size`` is the header length in bytes."""

    source_name: str = ""
    rawdatafile: str = ""
    az_start: float = 0.0
    za_start: float = 0.0
    src_raj: float = 0.0
    src_dej: float = 0.0
    tstart: float = 0.0
    tsamp: float = 0.0
    period: float = 0.0
    fch1: float = 0.0
    foff: float = 0.0
    nchans: int = 0
    telescope_id: int = 0
    machine_id: int = 0
    data_type: int = 0
    ibeam: int = 0
    nbeams: int = 0
    nbits: int = 0
    barycentric: int = 0
    pulsarcentric: int = 0
    nbins: int = 0
    nsamples: int = 0
    nifs: int = 0
    npuls: int = 0
    refdm: float = 0.0
    signed_data: int = 0
    size: int = 0


def _read_string(stream: BinaryIO) -> str | None:
    raw = stream.read(4)
    if len(raw) < 4:
        return None
    (length,) = struct.unpack("<i", raw)
    if length <= 0 or length >= _MAX_STRING:
        return None
    data = stream.read(length)
    if len(data) < length:
        return None
    return data.split(b"\0", 1)[0].decode("latin-1")


def read_header(stream: BinaryIO) -> SigprocHeader | None:
    """Read a header from a seekable binary stream.

    Returns None, with the stream rewound to its start, when the data does
    not begin with HEADER_START. Raises ValueError on a truncated or
    malformed header. Leaves the stream positioned just after the header.
    """
    if _read_string(stream) != "HEADER_START":
        stream.seek(0)
        return None

    header = SigprocHeader()
    expecting_source_name = False
    expecting_rawdatafile = False
    while True:
        key = _read_string(stream)
        if key is None:
            raise ValueError("truncated or malformed SIGPROC header")
        if key == "HEADER_END":
            break
        if key == "source_name":
            expecting_source_name = True
        elif key == "rawdatafile":
            expecting_rawdatafile = True
        elif key in _FIELDS:
            attr, fmt = _FIELDS[key]
            size = struct.calcsize(fmt)
            raw = stream.read(size)
            if len(raw) < size:
                raise ValueError(f"truncated value for header field '{key}'")
            (value,) = struct.unpack(fmt, raw)
            setattr(header, attr, value)
        elif expecting_source_name:
            header.source_name = key
            expecting_source_name = False
        elif expecting_rawdatafile:
            header.rawdatafile = key
            expecting_rawdatafile = False
        else:
            warnings.warn(f"read_header: unknown parameter {key}")

    header.size = stream.tell()
    if header.nsamples == 0 and header.nchans and header.nbits:
        end = stream.seek(0, io.SEEK_END)
        header.nsamples = end // header.nchans * 8 // header.nbits
        stream.seek(header.size)
    return header


def write_header_string(stream: BinaryIO, value: str) -> None:
    """Write a length-prefixed string."""
    encoded = value.encode("latin-1")
    stream.write(struct.pack("<i", len(encoded)))
    stream.write(encoded)


def write_header_int(stream: BinaryIO, name: str, value: int) -> None:
    """Write a keyword followed by a 32-bit integer."""
    write_header_string(stream, name)
    stream.write(struct.pack("<I", int(value) & 0xFFFFFFFF))


def write_header_double(stream: BinaryIO, name: str, value: float) -> None:
    """Write a keyword followed by a double."""
    write_header_string(stream, name)
    stream.write(struct.pack("<d", float(value)))


def write_header_byte(stream: BinaryIO, name: str, value: int) -> None:
    """Write a keyword followed by a single byte."""
    write_header_string(stream, name)
    stream.write(struct.pack("<B", int(value) & 0xFF))


def write_header_coords(
    stream: BinaryIO, raj: float, dej: float, az: float, za: float
) -> None:
    """Write the source and telescope pointing coordinates."""
    write_header_double(stream, "src_raj", raj)
    write_header_double(stream, "src_dej", dej)
    write_header_double(stream, "az_start", az)
    write_header_double(stream, "za_start", za)


def write_time_series_header(stream: BinaryIO, nbits: int, dt: float) -> None:
    """Write the header of a single-channel time series."""
    write_header_string(stream, "HEADER_START")
    write_header_int(stream, "data_type", 2)
    write_header_int(stream, "nchans", 1)
    write_header_int(stream, "nbits", nbits)
    write_header_double(stream, "tsamp", dt)
    write_header_int(stream, "nifs", 1)
    write_header_string(stream, "HEADER_END")


_Path = Union[str, "PathLike[str]"]


def write_time_series(data: Sequence[float], dt: float, filename: _Path) -> None:
    """Write ``data`` as a 32-bit float time series file."""
    samples = np.asarray(data, dtype="<f4")
    with open(filename, "wb") as out:
        write_time_series_header(out, 32, dt)
        out.write(samples.tobytes())


def write_packed_time_series(
    data: Sequence[int], nsamps: int, nbits: int, dt: float, filename: _Path
) -> None:
    """Unpack ``nsamps`` samples of ``nbits`` each from 32-bit words and write them as floats."""
    words = np.ascontiguousarray(np.asarray(data, dtype="<u4"))
    if nbits in (8, 16, 32):
        dtype = {8: "<u1", 16: "<u2", 32: "<u4"}[nbits]
        samples = words.view(dtype)[:nsamps]
        if len(samples) < nsamps:
            raise ValueError("not enough packed data for the requested samples")
    else:
        if nbits <= 0 or nbits > 32:
            raise ValueError(f"unsupported bit width {nbits}")
        per_word = 32 // nbits
        mask = (1 << nbits) - 1
        index = np.arange(nsamps, dtype=np.int64)
        if nsamps and (nsamps - 1) // per_word >= len(words):
            raise ValueError("not enough packed data for the requested samples")
        values = words.astype(np.int64)[index // per_word]
        samples = (values >> ((index % per_word) * nbits)) & mask
    write_time_series(samples.astype(np.float32), dt, filename)