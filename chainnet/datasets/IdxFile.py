"""
IdxFile.py
~~~~~~~~~~

Reader for the IDX format used by the MNIST distribution
(train-images-idx3-ubyte, train-labels-idx1-ubyte, ...).

Layout: 2 zero bytes, 1 byte element type (0x08 = unsigned byte),
1 byte dimension count, one big-endian uint32 per dimension, then the
payload in C order.
"""

import gzip
import logging
from typing import BinaryIO, Tuple

import numpy as np

logger = logging.getLogger(__name__)

UBYTE_TYPE = 0x08


class IdxFile:
    """In-memory contents of an unsigned-byte IDX file."""

    def __init__(self, dims: Tuple[int, ...], data: np.ndarray):
        self.dims = tuple(int(d) for d in dims)
        self.data = np.reshape(data, self.dims)

    @property
    def ndims(self) -> int:
        return len(self.dims)

    def __len__(self) -> int:
        return self.dims[0]

    @classmethod
    def read(cls, fp: BinaryIO) -> "IdxFile":
        """
        Read all the data from a binary stream.

        Raises:
            ValueError: If the header is not an unsigned-byte IDX header
                or the stream ends early
        """
        header = fp.read(4)
        if len(header) != 4:
            raise ValueError("truncated IDX header")
        magic = int.from_bytes(header[:2], "big")
        dtype_code, ndims = header[2], header[3]
        logger.debug("IdxFile.read: magic=%x, type=%x, ndims=%u", magic, dtype_code, ndims)
        if magic != 0:
            raise ValueError(f"bad IDX magic {magic:#x}")
        if dtype_code != UBYTE_TYPE:
            raise ValueError(f"unsupported IDX element type {dtype_code:#x}")
        if ndims < 1:
            raise ValueError("IDX file declares no dimensions")

        raw_dims = fp.read(4 * ndims)
        if len(raw_dims) != 4 * ndims:
            raise ValueError("truncated IDX dimensions")
        # fix the byte order
        dims = tuple(int(d) for d in np.frombuffer(raw_dims, dtype=">u4"))
        nbytes = int(np.prod(dims, dtype=np.int64))
        logger.debug("IdxFile.read: dims=%s (%d bytes)", dims, nbytes)

        payload = fp.read(nbytes)
        if len(payload) != nbytes:
            raise ValueError(
                f"truncated IDX payload: expected {nbytes} bytes, got {len(payload)}"
            )
        return cls(dims, np.frombuffer(payload, dtype=np.uint8))

    @classmethod
    def load(cls, path) -> "IdxFile":
        """Open ``path`` (gzip-compressed when it ends with .gz) and read it."""
        opener = gzip.open if str(path).endswith(".gz") else open
        with opener(path, "rb") as fp:
            return cls.read(fp)

    def get1(self, i: int) -> int:
        """Get the i-th record of a 1-D file (labels)."""
        if self.ndims != 1:
            raise ValueError(f"get1 needs a 1-D IDX file, this one has {self.ndims} dims")
        return int(self.data[self._index(i)])

    def get3(self, i: int) -> np.ndarray:
        """Get the i-th record of a 3-D file (one image as a uint8 matrix)."""
        if self.ndims != 3:
            raise ValueError(f"get3 needs a 3-D IDX file, this one has {self.ndims} dims")
        return self.data[self._index(i)]

    def _index(self, i):
        if not 0 <= i < self.dims[0]:
            raise IndexError(f"record {i} out of range (0..{self.dims[0] - 1})")
        return i
