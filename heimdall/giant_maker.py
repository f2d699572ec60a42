"""Synthetic filterbank data containing dispersed single pulses."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from os import PathLike
from typing import Sequence, Union

import numpy as np

from .sigproc import (
    write_header_coords,
    write_header_double,
    write_header_int,
    write_header_string,
)

DISPERSION_CONSTANT = 4.148808e3
_PI = 3.141593
_WORD_BITS = 32

_Path = Union[str, "PathLike[str]"]

_HELP = (
    "-----------\n"
    "Giant Maker\n"
    "-----------\n"
    "About: Generates filterbank data containing pre-specified giants.\n"
    "Usage: giant_maker -i giant_file [options]\n"
    "Options:\n"
    "-i filename\tInput file containing list of giants\n"
    "-o filename\tOutput file for filterbank data\n"
    "-n -nbits int\tNumber of bits per sample for output data\n"
    "-s -seed int\tSeed value for random number generator\n"
    "-t -time float\tDuration of output data in seconds\n"
    "-m -range float float\tMin and max with which to scale values\n"
    "-r -red int\tAdd red noise [0/1]\n"
    "-dt float\tSampling time in seconds\n"
    "-f0 float\tFrequency of first channel in MHz\n"
    "-df float\tFrequency step between channels in MHz\n"
    "\n"
    "Input files should list one giant per line as follows:\n"
    "Time(secs)\tSNR\twidth(secs)\tDM\n"
    "Note that SNR represents the optimal detection SNR.\n"
)


@dataclass
class Giant:
    """A pulse to inject: arrival time (s), flux (SNR), width (s) and DM."""

    time: float
    flux: float
    width: float
    dm: float


def get_delay(channel: int, f0: float, df: float) -> float:
    """Dispersion delay per unit DM, in seconds, of ``channel`` relative to channel 0."""
    return DISPERSION_CONSTANT * (1.0 / (f0 + channel * df) ** 2 - 1.0 / (f0 * f0))


def get_dm_smear(dm: float, f0: float, df: float) -> float:
    """Dispersion smearing across one channel of width ``df`` at ``f0``."""
    return 2 * DISPERSION_CONSTANT * dm * df / (f0 * f0 * f0)


def add_white_noise(
    data: np.ndarray, rng: np.random.Generator, mean: float = 0.0, rms: float = 1.0
) -> None:
    """Add Gaussian noise in place, drawn in pairs by the Box-Muller transform."""
    count = len(data)
    npairs = (count + 1) // 2
    u1 = 1.0 - rng.random(npairs)
    u2 = rng.random(npairs)
    radius = np.sqrt(-2 * np.log(u1))
    theta = 2 * _PI * u2
    z = np.empty(2 * npairs)
    z[0::2] = radius * np.cos(theta)
    z[1::2] = radius * np.sin(theta)
    data += (z[:count] * rms + mean).astype(data.dtype, copy=False)


def add_brown_noise(
    data: np.ndarray, rng: np.random.Generator, mean: float = 0.0, rms: float = 1.0
) -> None:
    """Add a Gaussian random walk in place."""
    count = len(data)
    u1 = 1.0 - rng.random(count)
    u2 = rng.random(count)
    steps = np.sqrt(-2 * np.log(u1)) * np.cos(2 * _PI * u2) * rms
    data += (np.cumsum(steps) + mean).astype(data.dtype, copy=False)


def add_red_noise(
    data: np.ndarray, rng: np.random.Generator, min_k: int, max_k: int, amp: float
) -> None:
    """Add sinusoids of harmonics ``min_k``..``max_k`` with random phases, in place."""
    count = len(data)
    if count == 0:
        return
    position = np.arange(count) / count
    for k in range(min_k, max_k + 1):
        phase = rng.random() * 2
        data += (amp * np.sin((position + phase) * _PI * k)).astype(data.dtype, copy=False)


def add_narrowband_rfi(data: np.ndarray, value: float) -> None:
    """Add a constant level to a channel's time series, in place."""
    data += value


def add_giant(
    data: np.ndarray,
    chan: int,
    time: float,
    width: float,
    flux: float,
    dm: float,
    dt: float,
    f0: float,
    df: float,
) -> None:
    """Add a dispersed top-hat pulse to the time series of channel ``chan``, in place.

    The flux is spread evenly over the dispersed extent of the pulse and
    shared between the samples it overlaps.
    """
    start = time - width / 2 + dm * get_delay(chan, f0, df)
    end = time + width / 2 + dm * get_delay(chan + 1, f0, df)
    duration = end - start
    if duration <= 0:
        return
    first_bin = int(start / dt + 0.5)
    last_bin = int(end / dt + 0.5)
    lo = max(first_bin - 1, 0)
    hi = min(last_bin + 1, len(data) - 1)
    if lo > hi:
        return
    bins = np.arange(lo, hi + 1)
    overlap = np.minimum(end, (bins + 0.5) * dt) - np.maximum(start, (bins - 0.5) * dt)
    overlap = np.clip(overlap, 0.0, None)
    data[lo : hi + 1] += (flux / duration * overlap).astype(data.dtype, copy=False)


def read_giants(path: _Path) -> list[Giant]:
    """Read giants, one per line as time, flux, width and DM.

    Blank lines and lines starting with '#' are skipped. Raises ValueError
    on a line with fewer than four numbers.
    """
    giants = []
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            line = line.rstrip("\r\n")
            if not line or line.startswith("#"):
                continue
            fields = line.split()
            if len(fields) < 4:
                raise ValueError(f"malformed giant line: {line!r}")
            time, flux, width, dm = (float(value) for value in fields[:4])
            giants.append(Giant(time, flux, width, dm))
    return giants


def _chans_per_word(nbits: int) -> int:
    if not 0 < nbits < _WORD_BITS:
        raise ValueError(f"unsupported bit width {nbits}")
    return _WORD_BITS // nbits


def _levels(
    filterbank: np.ndarray, nbits: int, min_val: float, max_val: float
) -> np.ndarray:
    flux = np.clip(np.asarray(filterbank, dtype=np.float32), np.float32(min_val), np.float32(max_val))
    amp = ((flux - np.float32(min_val)) / np.float32(max_val - min_val)).astype(np.float64)
    quant = (amp * (1 << nbits)).astype(np.int64)
    # A value at the top of the range wraps round to level zero.
    return quant & ((1 << nbits) - 1)


def _pack(levels: np.ndarray, nbits: int) -> np.ndarray:
    nchans, nsamps = levels.shape
    per_word = _chans_per_word(nbits)
    if nchans % per_word:
        raise ValueError(f"nchans ({nchans}) does not fill whole {_WORD_BITS}-bit words")
    shifts = (np.arange(per_word, dtype=np.int64) * nbits)[None, :, None]
    grouped = levels.reshape(nchans // per_word, per_word, nsamps) << shifts
    return grouped.sum(axis=1).T.astype(np.uint32)


def quantise(
    filterbank: np.ndarray, nbits: int, min_val: float, max_val: float
) -> np.ndarray:
    """Clip and quantise a (nchans, nsamps) array, packing channels into 32-bit words.

    Returns an array of shape (nsamps, nchans * nbits // 32). Raises
    ValueError when the bit width is unsupported or the channels do not
    fill whole words.
    """
    _chans_per_word(nbits)
    return _pack(_levels(filterbank, nbits, min_val, max_val), nbits)


def write_filterbank(
    path: _Path,
    packed: np.ndarray,
    f0: float,
    df: float,
    nchans: int,
    nbits: int,
    dt: float,
) -> None:
    """Write packed samples as a SIGPROC filterbank file of a simulated source."""
    words = np.asarray(packed, dtype="<u4")
    with open(path, "wb") as out:
        write_header_string(out, "HEADER_START")
        write_header_string(out, "source_name")
        write_header_string(out, "simulated_source")
        write_header_int(out, "telescope_id", 0)
        write_header_int(out, "machine_id", 0)
        write_header_coords(out, 0.0, 0.0, 0.0, 0.0)
        write_header_int(out, "data_type", 1)
        write_header_double(out, "refdm", 0.0)
        write_header_double(out, "fch1", f0)
        write_header_double(out, "foff", df)
        write_header_int(out, "nchans", nchans)
        write_header_int(out, "nbits", nbits)
        write_header_double(out, "tsamp", dt)
        write_header_int(out, "nifs", 1)
        write_header_string(out, "HEADER_END")
        out.write(words.tobytes())


def main(argv: Sequence[str] | None = None) -> int:
    """Generate a filterbank file containing the giants listed in an input file."""
    args = list(sys.argv[1:] if argv is None else argv)

    duration = 15.0
    nchans = 1024
    nbits = 2
    dt = 6.4e-5
    f0 = 1581.804688
    df = -0.390625
    min_val = -7.0
    max_val = 7.0
    seed = 1234
    red_noise = True
    out_filename = "giants.fil"
    giants_filename = "giants.dat"

    if not args:
        print(_HELP)

    it = iter(args)
    try:
        for arg in it:
            if arg == "-i":
                giants_filename = next(it)
            elif arg == "-o":
                out_filename = next(it)
            elif arg in ("-n", "-nbits"):
                nbits = int(next(it))
            elif arg in ("-s", "-seed"):
                seed = int(next(it))
            elif arg in ("-t", "-time"):
                duration = float(next(it))
            elif arg == "-dt":
                dt = float(next(it))
            elif arg == "-f0":
                f0 = float(next(it))
            elif arg == "-df":
                df = float(next(it))
            elif arg in ("-r", "-red"):
                red_noise = bool(int(next(it)))
            elif arg in ("-m", "-range"):
                min_val = float(next(it))
                max_val = float(next(it))
            else:
                print(f"WARNING: Unknown argument '{arg}'")
    except StopIteration:
        print("ERROR: Missing value for the last option", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: Invalid option value: {exc}", file=sys.stderr)
        return 1

    try:
        per_word = _chans_per_word(nbits)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    nsamps = int(duration / dt + 0.5)
    ostride = nchans // per_word
    print(f"nsamps =         {nsamps}")
    print(f"nchans =         {nchans}")
    print(f"stride =         {nsamps}")
    print(f"nbits =          {nbits}")
    print(f"ostride =        {ostride}")
    print(f"chans_per_word = {per_word}")

    try:
        giants = read_giants(giants_filename)
    except OSError:
        print(f"ERROR: Could not open '{giants_filename}'", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    for giant in giants:
        if giant.time < 0 or giant.time > duration:
            print("WARNING: Giant time out of range")

    print("Allocating memory...")
    filterbank = np.zeros((nchans, nsamps), dtype=np.float32)
    rng = np.random.default_rng(seed)

    print("Adding white noise...")
    for series in filterbank:
        add_white_noise(series, rng)

    if red_noise:
        print("Adding red noise...")
        red = np.zeros(nsamps, dtype=np.float32)
        add_red_noise(red, rng, 0, 8, 0.01)
        filterbank += red

    print("Adding giants...")
    for c, series in enumerate(filterbank):
        for giant in giants:
            t_dm = get_dm_smear(giant.dm, f0, df)
            observed_width = math.sqrt(giant.width**2 + t_dm**2 + dt**2)
            nbins = observed_width / min(dt, giant.width)
            flux = giant.flux / math.sqrt(nchans) * math.sqrt(nbins)
            add_giant(series, c, giant.time, giant.width, flux, giant.dm, dt, f0, df)

    print("Quantising filterbank data...")
    levels = _levels(filterbank, nbits, min_val, max_val)
    packed = _pack(levels, nbits)

    top = (1 << nbits) - 1
    total = float(levels.sum())
    centre = 0.5 * top
    sum_sq = float(((levels - centre) ** 2).sum())
    count = nchans * nsamps
    if count:
        print(f"Quantised mean   = {total / count / top:g}")
        print(f"Quantised rms    = {math.sqrt(sum_sq / count) * 2 / top:g}")
        print(f"Quantised absrms = {math.sqrt(sum_sq / count) * 2:g}")

    print("Writing to file...")
    write_filterbank(out_filename, packed, f0, df, nchans, nbits, dt)
    print("Done.")
    return 0