"""Chain value decoders returning ``Decoded`` results instead of raising."""

from accessindex.decoding.result import Decoded, DecodeError

__all__ = ["DecodeError", "Decoded"]
