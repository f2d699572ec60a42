# heimdall

Tools around single-pulse searches in radio astronomy data:

- `heimdall.params`: every search parameter with its default value (`Params`),
  plus `ChannelRange` for zapped channels and `div_round_up`.
- `heimdall.cli`: `parse_command_line` builds a `Params` from command-line
  arguments; `usage_text` and `print_usage` give the option summary.
- `heimdall.errors`: the pipeline's `ErrorCode` values, `get_error_string`
  and the `PipelineError` exception.
- `heimdall.sigproc`: reading SIGPROC headers (`read_header`,
  `SigprocHeader`), writing header fields, and writing single-channel
  time-series files (`write_time_series`, `write_packed_time_series`).
- `heimdall.fil2pgm`: unpacking and scrunching packed filterbank data and
  writing it as a PGM image.
- `heimdall.giant_maker`: generating synthetic filterbank files containing
  dispersed pulses.
- `heimdall.stopwatch`: a `Stopwatch` that sums time over several sessions.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tools

### heimdall-giant-maker

Writes a SIGPROC filterbank file (1024 channels) with white noise, optional
red noise and a list of dispersed "giant" pulses, then prints statistics of
the quantised data.

```
heimdall-giant-maker -i giants.dat -o giants.fil
```

| Option | Meaning | Default |
| --- | --- | --- |
| `-i filename` | input file listing the giants | `giants.dat` |
| `-o filename` | output filterbank file | `giants.fil` |
| `-n`, `-nbits int` | bits per output sample | 2 |
| `-s`, `-seed int` | random number generator seed | 1234 |
| `-t`, `-time float` | duration of the output in seconds | 15 |
| `-m`, `-range float float` | minimum and maximum used for quantisation | -7 7 |
| `-r`, `-red int` | add red noise (0 or 1) | 1 |
| `-dt float` | sampling time in seconds | 6.4e-5 |
| `-f0 float` | frequency of the first channel in MHz | 1581.804688 |
| `-df float` | channel spacing in MHz | -0.390625 |

Run with no arguments, it prints a help text and then proceeds with the
defaults. The giants file lists one pulse per line; blank lines and lines
starting with `#` are ignored:

```
# time(s)  SNR   width(s)  DM
5.0        20.0  0.001     100.0
```

### heimdall-fil2pgm

Unpacks a filterbank file, optionally scrunches it in time and frequency,
and writes a binary PGM image with one row per output sample and one column
per output channel.

```
heimdall-fil2pgm infile.fil outfile.pgm [nsamps] [skip] [tscrunch] [fscrunch]
```

`nsamps` defaults to 4096 and is rounded down to a multiple of `tscrunch`;
`skip` samples are skipped after the header. `fscrunch` must divide the
number of channels, otherwise the tool reports an error and exits with
status 1.

## Library use

Reading a filterbank header:

```python
from heimdall.sigproc import read_header

with open("obs.fil", "rb") as stream:
    header = read_header(stream)  # None if the file has no SIGPROC header
print(header.nchans, header.nbits, header.tsamp)
```

Writing a float time series:

```python
from heimdall.sigproc import write_time_series

write_time_series([0.0, 1.5, 3.0], 64e-6, "series.tim")
```

Search parameters from a command line:

```python
from heimdall.cli import UsageError, parse_command_line, print_usage

try:
    params = parse_command_line(["-f", "obs.fil", "-dm", "0", "500"])
except UsageError:
    print_usage()
else:
    print(params.dm_min, params.dm_max)
```

`parse_command_line` raises `UsageError` when `-h` is given, when an option
lacks its value, or when neither `-f` nor `-k` names an input.

Timing a block of work:

```python
from heimdall.stopwatch import Stopwatch

with Stopwatch() as watch:
    ...
print(watch.elapsed(), "s;", watch.average(), "ms per session")
```

## What this package does not do

It parses and holds search parameters but does not run the search itself:
there is no dedispersion, matched filtering or candidate detection. It reads
SIGPROC headers but offers no class for streaming filterbank samples. It
does not merge candidate lists from several beams, and has no server or
client for exchanging candidates over the network.