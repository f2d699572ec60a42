"""Search parameters and their defaults."""

from __future__ import annotations

from dataclasses import dataclass, field


def div_round_up(a: int, b: int) -> int:
    """Integer division of positive ``a`` by ``b``, rounding up."""
    return (a - 1) // b + 1


@dataclass
class ChannelRange:
    """An inclusive range of frequency channels."""

    start: int
    end: int


@dataclass
class Params:
    """Every tunable of a search run, with its default value."""

    # Application
    verbosity: int = 0
    dada_id: int = 0
    sigproc_file: str | None = None
    yield_cpu: bool = False
    nsamps_gulp: int = 262144
    dm_gulp_size: int = 2048
    # Normalisation
    baseline_length: float = 0.268435456
    # Observation
    beam: int = 0
    override_beam: bool = False
    nchans: int = 1024
    dt: float = 64e-6
    f0: float = 1581.804688
    df: float = -0.390625
    nsnap: int = 1
    # Dedispersion
    dm_min: float = 0.0
    dm_max: float = 1000.0
    dm_tol: float = 1.25
    dm_pulse_width: float = 40.0
    dm_nbits: int = 32
    use_scrunching: bool = True
    scrunch_tol: float = 1.15
    # RFI mitigation
    nbeams: int = 1
    rfi_tol: float = 5.0
    rfi_min_beams: int = 8
    # Single pulse search
    boxcar_max: int = 256
    detect_thresh: float = 6.5
    n_boxcar_inc: int = 10
    cand_sep_time: int = 2
    cand_sep_filter: int = 3
    cand_sep_dm: int = 100
    # Stored as a whole number of DM units, so the nominal 1.5 becomes 1.
    cand_rfi_dm_cut: int = 1
    max_giant_rate: float = 2000000.0
    min_tscrunch_width: int = 256
    # Coincidencer reporting
    coincidencer_host: str | None = None
    coincidencer_port: int = -1
    # Channel ordering and zapping
    fswap: bool = False
    channel_zaps: list[ChannelRange] = field(default_factory=list)
    # Miscellaneous
    beam_count: int = 13
    gpu_id: int = 0
    utc_start: int = 0
    spectra_per_second: int = 0
    output_dir: str = "."

    @property
    def num_channel_zaps(self) -> int:
        """Number of zapped channel ranges."""
        return len(self.channel_zaps)