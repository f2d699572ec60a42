"""Render packed filterbank data as a greyscale PGM image."""

from __future__ import annotations

import io
import re
import sys
from os import PathLike
from typing import Sequence, Union

import numpy as np

from .sigproc import read_header

_WORD_BITS = 32
_PEAK = np.float32(255)

_Path = Union[str, "PathLike[str]"]

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def unpack_scrunch(
    packed: Sequence[int] | np.ndarray,
    nchans: int,
    nbits: int,
    nsamps: int,
    tscrunch: int = 1,
    fscrunch: int = 1,
) -> np.ndarray:
    """Unpack ``nsamps`` samples of 32-bit words and average blocks of samples.

    Each value is scaled to 0..255 and the mean over ``tscrunch`` samples by
    ``fscrunch`` channels becomes one byte of the result, which has shape
    (nsamps // tscrunch, nchans // fscrunch). Words missing from ``packed``
    count as zero. Raises ValueError when the factors do not divide the data.
    """
    if not 0 < nbits <= _WORD_BITS:
        raise ValueError(f"unsupported bit width {nbits}")
    if tscrunch <= 0 or fscrunch <= 0:
        raise ValueError("scrunch factors must be positive")
    if nsamps % tscrunch:
        raise ValueError(f"tscrunch ({tscrunch}) does not divide nsamps ({nsamps})")
    if nchans % fscrunch:
        raise ValueError(f"fscrunch ({fscrunch}) does not divide nchans ({nchans})")
    chans_per_word = _WORD_BITS // nbits
    if nchans % chans_per_word:
        raise ValueError("nchans does not fill whole words")

    mask = (1 << nbits) - 1
    stride_words = nchans // chans_per_word
    words = np.asarray(packed, dtype=np.uint32).ravel()
    full = np.zeros(nsamps * stride_words, dtype=np.uint64)
    count = min(full.size, words.size)
    full[:count] = words[:count]

    shifts = np.arange(chans_per_word, dtype=np.uint64) * np.uint64(nbits)
    values = (full.reshape(nsamps, stride_words)[:, :, None] >> shifts) & np.uint64(mask)
    scaled = values.reshape(nsamps, nchans).astype(np.float32) / np.float32(mask) * _PEAK

    out_nsamps = nsamps // tscrunch
    out_nchans = nchans // fscrunch
    blocks = scaled.reshape(out_nsamps, tscrunch, out_nchans, fscrunch)
    total = np.zeros((out_nsamps, out_nchans), dtype=np.float32)
    # Accumulate in single precision in the same order as a scalar loop.
    for s in range(tscrunch):
        for f in range(fscrunch):
            total += blocks[:, s, :, f]
    return (total / np.float32(tscrunch * fscrunch)).astype(np.uint8)


def write_pgm(path: _Path, data: np.ndarray | bytes, width: int, height: int) -> None:
    """Write 8-bit greyscale pixels as a binary PGM file."""
    pixels = np.asarray(bytearray(data) if isinstance(data, bytes) else data, dtype=np.uint8)
    with open(path, "wb") as out:
        out.write(f"P5 {width} {height} 255\n".encode("ascii"))
        out.write(pixels.tobytes())


def main(argv: Sequence[str] | None = None) -> int:
    """Convert a filterbank file: infile outfile [nsamps] [skip] [tscrunch] [fscrunch]."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print("Usage: fil2pgm infile outfile [nsamps] [skip] [tscrunch] [fscrunch]")
        return 0
    in_filename, out_filename = args[0], args[1]
    out_nsamps = _atoi(args[2]) if len(args) > 2 else 4096
    skip = _atoi(args[3]) if len(args) > 3 else 0
    tscrunch = _atoi(args[4]) if len(args) > 4 else 1
    fscrunch = _atoi(args[5]) if len(args) > 5 else 1
    if tscrunch <= 0 or fscrunch <= 0:
        print("Error: scrunch factors must be positive")
        return 1

    if out_nsamps % tscrunch:
        out_nsamps = out_nsamps // tscrunch * tscrunch
        print(f"Warning: Adjusting nsamps to multiple of tscrunch: {out_nsamps}")

    with open(in_filename, "rb") as in_file:
        header = read_header(in_file)
        if header is None or not 0 < header.nbits <= _WORD_BITS:
            print(f"Error: '{in_filename}' is not a SIGPROC filterbank file")
            return 1
        if header.nchans % fscrunch:
            print(
                f"Error: fscrunch ({fscrunch}) does not divide nchans ({header.nchans})"
            )
            return 1
        chans_per_word = _WORD_BITS // header.nbits
        stride_bytes = header.nchans * 4 // chans_per_word

        print("Reading file...")
        in_file.seek(skip * stride_bytes, io.SEEK_CUR)
        raw = in_file.read(out_nsamps * stride_bytes)

    words = np.frombuffer(raw[: len(raw) // 4 * 4], dtype="<u4")
    print(f"Unpacking {header.nbits}-bit data...")
    image = unpack_scrunch(
        words, header.nchans, header.nbits, out_nsamps, tscrunch, fscrunch
    )

    print("Writing output...")
    write_pgm(out_filename, image, header.nchans // fscrunch, out_nsamps // tscrunch)
    print("Done.")
    return 0