import numpy as np
import pytest

from lephonk.ring_buffer import RingBuffer


def test_read_reports_peak_of_mid_signal():
    rb = RingBuffer()
    rb.prepare(100)
    rb.write_samples(np.array([[0.2, -0.8, 0.1], [0.2, -0.4, 0.1]]))
    assert rb.read_samples() == pytest.approx(0.6)
    assert rb.read_samples() == 0.0


def test_wraparound_reads_all_pending():
    rb = RingBuffer()
    rb.prepare(10)
    rb.write_samples(np.zeros((2, 8)))
    assert rb.read_samples() == 0.0
    block = np.zeros((2, 5))
    block[:, 4] = 0.5
    rb.write_samples(block)
    assert rb.read_samples() == pytest.approx(0.5)


def test_exact_fill_wraps_to_start():
    rb = RingBuffer()
    rb.prepare(4)
    rb.write_samples(np.full((2, 4), 0.25))
    # write index returned to start, so nothing appears pending
    assert rb.read_samples() == 0.0


def test_invalid_blocks():
    rb = RingBuffer()
    rb.prepare(4)
    with pytest.raises(ValueError):
        rb.write_samples(np.zeros((1, 2)))
    with pytest.raises(ValueError):
        rb.write_samples(np.zeros((2, 5)))
    with pytest.raises(RuntimeError):
        RingBuffer().write_samples(np.zeros((2, 1)))