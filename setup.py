# Copyright European Space Agency, 2013

from setuptools import setup, find_packages
import re

# version handling from https://stackoverflow.com/a/7071358
VERSIONFILE="mathtransform/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

setup(
    name = 'mathtransform',
    description = 'Coordinate transform algebra with double-double affine matrices and geodesy kernels',
    long_description = open('README.rst').read(),
    version = verstr,
    author = 'Maik Riechert',
    author_email = 'mriecher@cosmos.esa.int',
    license = 'ESCL - Type 1',
    classifiers=[
      'Development Status :: 4 - Beta',
      'Intended Audience :: Science/Research',
      'Natural Language :: English',
      'Programming Language :: Python :: 3',
      'Operating System :: OS Independent',
      'Topic :: Scientific/Engineering :: GIS',
      'Topic :: Software Development :: Libraries',
    ],
    packages = find_packages(exclude=['mathtransform.test']),
    install_requires=['numpy>=1.10',
                      'scipy>=0.9',
                      'numexpr',
                      'geographiclib',
                      'astropy>=1.0',
                      ],
    extras_require = {
        'test': ['pytest'],
    },
)
