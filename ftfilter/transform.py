"""
Radix-2 decimation-in-time FFT.

The butterfly network runs iteratively over a single complex buffer:
inputs are permuted into bit-reversed order once, then each stage combines
pairs of half-size transforms in place. This is the index-based form of
the recursive even/odd split and produces identical bins.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import InvalidTransformLengthError

ComplexArray: TypeAlias = NDArray[np.complex128]


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


@lru_cache(maxsize=32)
def _bit_reversed_indices(n: int) -> NDArray[np.intp]:
    bits = n.bit_length() - 1
    indices = np.arange(n)
    reversed_indices = np.zeros(n, dtype=np.intp)
    for _ in range(bits):
        reversed_indices = (reversed_indices << 1) | (indices & 1)
        indices = indices >> 1
    reversed_indices.setflags(write=False)
    return reversed_indices


@lru_cache(maxsize=64)
def _twiddles(size: int) -> ComplexArray:
    factors = np.exp(-2j * np.pi * np.arange(size // 2) / size)
    factors.setflags(write=False)
    return factors


def _as_complex(x: ArrayLike) -> ComplexArray:
    buffer: ComplexArray = np.array(x, dtype=np.complex128).reshape(-1)
    if not is_power_of_two(buffer.size):
        raise InvalidTransformLengthError(
            f"transform length must be a power of two, got {buffer.size}"
        )
    return buffer


def _butterflies(buffer: ComplexArray) -> ComplexArray:
    n = buffer.size
    buffer = buffer[_bit_reversed_indices(n)]
    size = 2
    while size <= n:
        half = size // 2
        blocks = buffer.reshape(-1, size)
        even = blocks[:, :half].copy()
        odd = blocks[:, half:] * _twiddles(size)
        blocks[:, :half] = even + odd
        blocks[:, half:] = even - odd
        size *= 2
    return buffer


def forward(x: ArrayLike) -> ComplexArray:
    """Discrete Fourier transform of a power-of-two length sequence."""
    return _butterflies(_as_complex(x))


def inverse(spectrum: ArrayLike) -> ComplexArray:
    """Inverse transform, defined through ``forward`` as conj(F(conj(X))) / N."""
    buffer = _as_complex(spectrum)
    return np.conj(forward(np.conj(buffer))) / buffer.size


def magnitude(spectrum: ArrayLike) -> NDArray[np.float64]:
    values: Any = np.asarray(spectrum, dtype=np.complex128)
    return np.sqrt(values.real**2 + values.imag**2)
