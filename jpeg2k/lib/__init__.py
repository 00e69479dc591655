"""ctypes bindings of the native libraries employed by jpeg2k."""
from . import openjp2 as openjp2

__all__ = [openjp2]
