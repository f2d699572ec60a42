import numpy as np
import pytest

from heimdall.giant_maker import (
    Giant,
    add_brown_noise,
    add_giant,
    add_narrowband_rfi,
    add_red_noise,
    add_white_noise,
    get_delay,
    get_dm_smear,
    main,
    quantise,
    read_giants,
    write_filterbank,
)
from heimdall.sigproc import read_header


def test_delay_of_first_channel_is_zero():
    assert get_delay(0, 1581.804688, -0.390625) == 0.0


def test_delay_grows_with_channel_for_falling_frequency():
    delays = [get_delay(c, 1581.804688, -0.390625) for c in range(0, 1024, 128)]
    assert all(b > a for a, b in zip(delays, delays[1:]))


def test_delay_uses_dispersion_constant():
    assert get_delay(1, 1.0, 1.0) / -0.75 == pytest.approx(4.148808e3)


def test_dm_smear_properties():
    assert get_dm_smear(0.0, 1500.0, -0.39) == 0.0
    assert get_dm_smear(100.0, 1500.0, -0.39) < 0
    assert get_dm_smear(2.0, 1500.0, 0.5) == pytest.approx(2 * get_dm_smear(1.0, 1500.0, 0.5))


def test_white_noise_statistics_and_odd_length():
    rng = np.random.default_rng(1)
    data = np.zeros(200001, dtype=np.float32)
    add_white_noise(data, rng, 2.0, 3.0)
    assert abs(data.mean() - 2.0) < 0.05
    assert abs(data.std() - 3.0) < 0.05


def test_brown_noise_without_spread_adds_mean():
    rng = np.random.default_rng(2)
    data = np.ones(10, dtype=np.float32)
    add_brown_noise(data, rng, 5.0, 0.0)
    assert np.allclose(data, 6.0)


def test_brown_noise_steps_have_given_rms():
    rng = np.random.default_rng(3)
    data = np.zeros(100000)
    add_brown_noise(data, rng, 0.0, 2.0)
    assert abs(np.diff(data).std() - 2.0) < 0.05


def test_red_noise_zero_harmonic_is_flat():
    rng = np.random.default_rng(4)
    data = np.full(64, 1.5, dtype=np.float32)
    add_red_noise(data, rng, 0, 0, 1.0)
    assert data.tolist() == [1.5] * 64


def test_red_noise_is_bounded_by_amplitude():
    rng = np.random.default_rng(5)
    data = np.zeros(512)
    add_red_noise(data, rng, 0, 8, 0.01)
    assert np.abs(data).max() <= 9 * 0.01 + 1e-12
    assert np.abs(data).max() > 0


def test_narrowband_rfi_adds_level():
    data = np.arange(5, dtype=np.float32)
    add_narrowband_rfi(data, 3)
    assert data.tolist() == [3.0, 4.0, 5.0, 6.0, 7.0]


def test_giant_flux_is_conserved():
    data = np.zeros(100, dtype=np.float32)
    add_giant(data, 0, 50.0, 4.0, 10.0, 0.0, 1.0, 1500.0, -1.0)
    assert data.sum() == pytest.approx(10.0, rel=1e-5)
    assert np.count_nonzero(data) == 5
    assert data[50] == pytest.approx(2.5)


def test_giant_outside_series_adds_nothing():
    data = np.full(20, 2.0, dtype=np.float32)
    add_giant(data, 0, 1000.0, 2.0, 10.0, 0.0, 1.0, 1500.0, -1.0)
    assert data.tolist() == [2.0] * 20


def test_giant_is_delayed_in_lower_channels():
    low = np.zeros(2000, dtype=np.float32)
    high = np.zeros(2000, dtype=np.float32)
    add_giant(low, 0, 0.5, 0.004, 10.0, 100.0, 0.001, 1500.0, -1.0)
    add_giant(high, 500, 0.5, 0.004, 10.0, 100.0, 0.001, 1500.0, -1.0)
    assert np.argmax(high) > np.argmax(low) + 100


def test_read_giants_skips_comments(tmp_path):
    path = tmp_path / "giants.dat"
    path.write_text("# time flux width dm\n\n1.5 10 0.001 200\n2 8 0.002 50\n")
    giants = read_giants(path)
    assert giants == [Giant(1.5, 10.0, 0.001, 200.0), Giant(2.0, 8.0, 0.002, 50.0)]


def test_read_giants_rejects_short_line(tmp_path):
    path = tmp_path / "giants.dat"
    path.write_text("1.5 10\n")
    with pytest.raises(ValueError):
        read_giants(path)


def _unpack(packed, nchans, nbits):
    per_word = 32 // nbits
    mask = (1 << nbits) - 1
    return np.array(
        [[(int(row[c // per_word]) >> ((c % per_word) * nbits)) & mask for c in range(nchans)]
         for row in packed]
    ).T


def test_quantise_levels_and_packing():
    values = np.array([-7.0, -3.5, 0.0, 3.5, 7.0, 100.0, -100.0])
    fb = np.resize(values, (16, 3)).astype(np.float32)
    packed = quantise(fb, 2, -7.0, 7.0)
    assert packed.shape == (3, 1)
    levels = _unpack(packed, 16, 2)
    expected = {-7.0: 0, -3.5: 1, 0.0: 2, 3.5: 3, 7.0: 0, 100.0: 0, -100.0: 0}
    assert levels.tolist() == [[expected[float(v)] for v in row] for row in fb]


def test_quantise_rejects_partial_words():
    with pytest.raises(ValueError):
        quantise(np.zeros((10, 4), dtype=np.float32), 2, -7.0, 7.0)
    with pytest.raises(ValueError):
        quantise(np.zeros((16, 4), dtype=np.float32), 0, -7.0, 7.0)


def test_write_filterbank_round_trip(tmp_path):
    path = tmp_path / "out.fil"
    packed = np.arange(12, dtype=np.uint32).reshape(4, 3)
    write_filterbank(path, packed, 1581.804688, -0.390625, 48, 2, 6.4e-5)
    with open(path, "rb") as handle:
        header = read_header(handle)
        data = handle.read()
    assert header.source_name == "simulated_source"
    assert header.data_type == 1
    assert header.nchans == 48
    assert header.nbits == 2
    assert header.nifs == 1
    assert header.tsamp == 6.4e-5
    assert header.fch1 == 1581.804688
    assert header.foff == -0.390625
    assert np.frombuffer(data, dtype="<u4").tolist() == list(range(12))


def test_main_writes_reproducible_file(tmp_path):
    giants = tmp_path / "giants.dat"
    giants.write_text("0.005 20 0.002 10\n")
    outputs = []
    for name in ("a.fil", "b.fil"):
        out = tmp_path / name
        status = main(["-i", str(giants), "-o", str(out), "-t", "0.01", "-dt", "0.001", "-s", "7"])
        assert status == 0
        outputs.append(out.read_bytes())
        with open(out, "rb") as handle:
            header = read_header(handle)
        assert header.nchans == 1024
        assert header.nbits == 2
        assert len(outputs[-1]) == header.size + 10 * 64 * 4
    assert outputs[0] == outputs[1]


def test_main_missing_giants_file(tmp_path):
    status = main(["-i", str(tmp_path / "absent.dat"), "-o", str(tmp_path / "x.fil"), "-t", "0.01", "-dt", "0.001"])
    assert status == 1
    assert not (tmp_path / "x.fil").exists()