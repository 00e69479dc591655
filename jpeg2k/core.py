"""Core definitions to be shared amongst the modules.
"""

# Signature of a raw codestream:  SOC marker followed by the SIZ marker.
J2K_SIGNATURE = b'\xff\x4f\xff\x51'

# Signature of a JP2 file:  the 12-byte 'jP  ' box.
JP2_SIGNATURE = b'\x00\x00\x00\x0cjP  \r\n\x87\n'

# File extensions handled by the asset loader.  The format itself is always
# detected from the magic bytes.
EXTENSIONS = ('j2k', 'jp2', 'j2c')

# OpenJPEG does not produce more than 16 bits per sample for the color
# spaces handled here.
MIN_PRECISION = 1
MAX_PRECISION = 16

# Sample depths of the canonical pixel buffer.
OUTPUT_BITS = (8, 16)

# Rows per work unit when the pixel buffer is assembled by several threads.
MIN_ROWS_PER_TASK = 16
