"""In-memory input streams for the OpenJPEG decoder."""

# Standard library imports
import ctypes

# Local imports
from .lib import openjp2 as opj2


class BufferStream(object):
    """Feed a bytes-like object to OpenJPEG through stream callbacks.

    The ctypes callback objects are attributes of this instance, so the
    instance must stay alive for as long as the native stream is in use.

    Attributes
    ----------
    offset : int
        Current read position.
    """

    def __init__(self, data):
        self._data = bytes(data)
        self.offset = 0

        self._read_callback = opj2.STREAM_READ_TYPE(self._read)
        self._skip_callback = opj2.STREAM_SKIP_TYPE(self._skip)
        self._seek_callback = opj2.STREAM_SEEK_TYPE(self._seek)

    def __len__(self):
        return len(self._data)

    def __repr__(self):
        return f"BufferStream: len={len(self)}"

    def create(self):
        """Create the native read stream.

        Returns
        -------
        stream : STREAM_TYPE_P
            Must be released with opj2.stream_destroy.
        """
        stream = opj2.stream_default_create(True)
        opj2.stream_set_read_function(stream, self._read_callback)
        opj2.stream_set_skip_function(stream, self._skip_callback)
        opj2.stream_set_seek_function(stream, self._seek_callback)
        opj2.stream_set_user_data_length(stream, len(self._data))
        return stream

    def read_into(self, p_buffer, nb_bytes):
        """Copy at most nb_bytes into the buffer at address p_buffer.

        Returns the number of bytes copied, zero at the end of the data.
        """
        remaining = len(self._data) - self.offset
        nbytes = min(remaining, nb_bytes)
        if nbytes <= 0:
            return 0

        start = self.offset
        ctypes.memmove(p_buffer, self._data[start:start + nbytes], nbytes)
        self.offset += nbytes
        return nbytes

    def skip(self, nb_bytes):
        """Move the read position relative to the current one, staying
        within the data.  Returns the number of bytes actually skipped.
        """
        new_offset = min(max(self.offset + nb_bytes, 0), len(self._data))
        skipped = new_offset - self.offset
        self.offset = new_offset
        return skipped

    def seek(self, offset):
        """Move the read position to an absolute offset.

        Returns False when the offset lies outside of the data, in which case
        the position is left at the end.
        """
        if 0 <= offset <= len(self._data):
            self.offset = offset
            return True
        self.offset = len(self._data)
        return False

    def _read(self, p_buffer, nb_bytes, _):
        if not p_buffer or nb_bytes == 0:
            return 0
        nbytes = self.read_into(p_buffer, nb_bytes)
        return nbytes if nbytes > 0 else opj2.STREAM_READ_EOF

    def _skip(self, nb_bytes, _):
        skipped = self.skip(nb_bytes)
        if skipped == 0 and nb_bytes != 0:
            return -1
        return skipped

    def _seek(self, offset, _):
        return opj2.TRUE if self.seek(offset) else opj2.FALSE
