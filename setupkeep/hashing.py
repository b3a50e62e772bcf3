"""
Storage key derivation for setups.

Setup keys are the 128-bit MurmurHash3 (x64 variant, seed 0) of the setup
name, rendered as 32 lowercase hex characters. Keys are a fixed length
whatever characters the name contains; the name itself lives only in the
JSON body.

Collisions are possible in principle and accepted: two distinct names would
have to collide within a single user's setups, which is vanishingly unlikely
at 128 bits.

The name is hashed as UTF-16LE code units, the same input Guava's
``murmur3_128().hashUnencodedChars`` uses, so keys in existing stores match.
"""

import mmh3

KEY_LENGTH = 32


def setup_key(name: str) -> str:
    """Return the storage key suffix for a setup name.

    Total over all strings, including the empty string.
    """
    data = name.encode("utf-16-le", errors="surrogatepass")
    return mmh3.hash_bytes(data, seed=0, x64arch=True).hex()
