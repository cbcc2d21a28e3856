from __future__ import annotations

# EVM storage geometry
WORD_SIZE = 32
WORD_BITS = 256
MAX_SLOT = (1 << WORD_BITS) - 1
ZERO_WORD = b"\x00" * WORD_SIZE

# Longest payload that fits inline under the short blob encoding
SHORT_BLOB_MAX = 31
