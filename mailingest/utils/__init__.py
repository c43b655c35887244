"""Utility functions"""

from .line_buffer import EndOfBufferError, InputTooLargeError, LineBuffer
from .unicode_utils import decode_if_necessary, decode_text

__all__ = ["EndOfBufferError", "InputTooLargeError", "LineBuffer", "decode_if_necessary", "decode_text"]
