"""
This file is part of jpeg2k, a Python JPEG 2000 image loader.

License:  MIT
"""

# Standard library imports ...
import sys

# Third party library imports ...
from packaging.version import parse
import numpy as np
import PIL

# Local imports ...
from .lib import openjp2 as opj2

# Do not change the format of this next line!  Doing so risks breaking
# setup.py
version = "0.10.1"

version_tuple = parse(version).release

openjpeg_version = opj2.version()
openjpeg_version_tuple = parse(openjpeg_version).release

__doc__ = f"""\
This is jpeg2k **{version}**

* OpenJPEG version:  **{openjpeg_version}**
"""

info = f"""\
Summary of jpeg2k configuration
-------------------------------

jpeg2k        {version}
OpenJPEG      {openjpeg_version}
Python        {sys.version}
sys.platform  {sys.platform}
sys.maxsize   {sys.maxsize}
numpy         {np.__version__}
Pillow        {PIL.__version__}
"""
