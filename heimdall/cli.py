"""Command-line parsing for the search pipeline."""

from __future__ import annotations

import re
import sys
from typing import Callable, Iterator, Sequence, TextIO

from .params import ChannelRange, Params


class UsageError(Exception):
    """Raised when the command line asks for help or cannot be used."""


_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?))"
)
_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")


def _atoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _hex(text: str) -> int:
    match = _HEX_PREFIX.match(text)
    if not match:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def _flag(text: str) -> bool:
    return _atoi(text) != 0


def _whole(text: str) -> int:
    return int(_atof(text))


_SINGLE_VALUE: dict[str, tuple[str, Callable[[str], object]]] = {
    "-k": ("dada_id", _hex),
    "-f": ("sigproc_file", str),
    "-yield_cpu": ("yield_cpu", _flag),
    "-nsamps_gulp": ("nsamps_gulp", _atoi),
    "-nsnap": ("nsnap", _atoi),
    "-baseline_length": ("baseline_length", _atof),
    "-dm_tol": ("dm_tol", _atof),
    "-dm_pulse_width": ("dm_pulse_width", _atof),
    "-dm_nbits": ("dm_nbits", _atoi),
    "-gpu_id": ("gpu_id", _atoi),
    "-scrunching": ("use_scrunching", _flag),
    "-scrunch_tol": ("scrunch_tol", _atof),
    "-rfi_tol": ("rfi_tol", _atof),
    "-rfi_min_beams": ("rfi_min_beams", _atoi),
    "-boxcar_max": ("boxcar_max", _atoi),
    "-n_boxcar_inc": ("n_boxcar_inc", _atoi),
    "-detect_thresh": ("detect_thresh", _atof),
    "-beam_count": ("beam_count", _atoi),
    "-cand_sep_time": ("cand_sep_time", _atoi),
    "-cand_sep_filter": ("cand_sep_filter", _atoi),
    "-cand_sep_dm_trial": ("cand_sep_dm", _atoi),
    "-cand_rfi_dm_cut": ("cand_rfi_dm_cut", _whole),
    "-max_giant_rate": ("max_giant_rate", _atof),
    "-output_dir": ("output_dir", str),
    "-min_tscrunch_width": ("min_tscrunch_width", _atoi),
    "-nbeams": ("nbeams", _atoi),
}

_VERBOSITY = {"-v": 1, "-V": 2, "-g": 3, "-G": 4}


def _values(option: str, args: Iterator[str], count: int) -> list[str]:
    values = []
    for _ in range(count):
        value = next(args, None)
        if value is None:
            raise UsageError(f"option '{option}' expects {count} value(s)")
        values.append(value)
    return values


def parse_command_line(argv: Sequence[str]) -> Params:
    """Build search parameters from ``argv`` (arguments after the program name).

    Raises UsageError when help is requested, an option lacks its value,
    or no input source is given.
    """
    params = Params()
    args = iter(argv)
    for arg in args:
        if arg == "-h":
            raise UsageError("help requested")
        if arg in _VERBOSITY:
            params.verbosity = max(params.verbosity, _VERBOSITY[arg])
        elif arg in _SINGLE_VALUE:
            name, convert = _SINGLE_VALUE[arg]
            (value,) = _values(arg, args, 1)
            setattr(params, name, convert(value))
        elif arg == "-dm":
            low, high = _values(arg, args, 2)
            params.dm_min = _atof(low)
            params.dm_max = _atof(high)
        elif arg == "-beam":
            (value,) = _values(arg, args, 1)
            params.beam = _atoi(value) - 1
            params.override_beam = True
        elif arg == "-coincidencer":
            (value,) = _values(arg, args, 1)
            host, _, port = value.partition(":")
            params.coincidencer_host = host
            params.coincidencer_port = _atoi(port)
        elif arg == "-fswap":
            params.fswap = True
        elif arg == "-zap_chans":
            start, end = _values(arg, args, 2)
            params.channel_zaps.append(ChannelRange(_atoi(start), _atoi(end)))
        else:
            print(f"WARNING: Unknown parameter '{arg}'", file=sys.stderr)

    if params.sigproc_file is None and params.dada_id == 0:
        raise UsageError("no input mechanism specified")
    return params


def usage_text() -> str:
    """Return the usage message, including default values."""
    p = Params()
    lines = [
        "Usage: heimdall [options]",
        "    -nsnap nsnap             number of SNAP inputs to expect",
        "    -k  key                  use PSRDADA hexidecimal key",
        "    -f  filename             process specified SIGPROC filterbank file",
        "    -vVgG                    increase verbosity level",
        "    -yield_cpu               TBA",
        "    -gpu_id ID               run on specified GPU",
        f"    -nsamps_gulp num         number of samples to be read at a time [{p.nsamps_gulp}]",
        "    -baseline_length num     TBA",
        "    -beam ##                 over-ride beam number",
        "    -output_dir path         create all output files in specified path",
        "    -dm min max              min and max DM",
        "    -dm_tol num              SNR loss tolerance between each DM trial [1.25]",
        "    -coincidencer host:port  connect to the coincidencer on the specified host and port",
        "    -zap_chans start end     zap all channels between start and end channels inclusive",
        "    -max_giant_rate nevents  limit the maximum number of individual detections per minute to nevents",
        "    -nbeams                  The number of beams to process simultaneously.",
        "    -n_boxcar_inc            The number of linear boxcar filter width increments.",
        "    -dm_pulse_width num      TBA",
        "    -dm_nbits num            TBA",
        "    -scrunching num          TBA",
        "    -scrunching_tol num      TBA",
        "    -rfi_tol num             TBA",
        "    -rfi_min_beams num       TBA",
        "    -boxcar_max num          TBA",
        "    -fswap                   Swap channel ordering for negative DM - SIGPROC 2,4 or 8 bit only",
        "    -min_tscrunch_width num  vary between high quality (large value) and high performance (low value)",
    ]
    return "\n".join(lines) + "\n"


def print_usage(file: TextIO | None = None) -> None:
    """Write the usage message to ``file`` (standard output by default)."""
    (file if file is not None else sys.stdout).write(usage_text())