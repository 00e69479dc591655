# Standard library imports ...
import pathlib
import re

# Third party library imports ...
from setuptools import setup

kwargs = {
    'name': 'jpeg2k',
    'description': 'Decode JPEG 2000 images into canonical pixel buffers',
    'long_description': open('README.md').read(),
    'long_description_content_type': 'text/markdown',
    'packages': ['jpeg2k', 'jpeg2k.lib'],
    'license': 'MIT',
    'python_requires': '>=3.8',
    'install_requires': ['numpy', 'packaging', 'Pillow'],
    'extras_require': {'test': ['pytest']},
}

kwargs['classifiers'] = [
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: Implementation :: CPython",
    "License :: OSI Approved :: MIT License",
    "Development Status :: 4 - Beta",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Operating System :: Microsoft :: Windows",
    "Intended Audience :: Developers",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Software Development :: Libraries :: Python Modules"
]

# Get the version string.  Cannot do this by importing jpeg2k!
p = pathlib.Path('jpeg2k') / 'version.py'
contents = p.read_text()
pattern = r'''version\s=\s"(?P<version>\d*.\d*.\d*.*)"\s'''
match = re.search(pattern, contents)
kwargs['version'] = match.group('version')

setup(**kwargs)
