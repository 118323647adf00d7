#! /usr/bin/env python
"""Time-varying VAR models and spectral connectivity with MNE."""

import codecs
import os

from setuptools import find_packages, setup

# get the version from __init__.py
version = None
with open(os.path.join('mne_tvar', '__init__.py'), 'r') as fid:
    for line in (line.strip() for line in fid):
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip('\'')
            break
if version is None:
    raise RuntimeError('Could not determine version')

DISTNAME = 'mne-tvar'
DESCRIPTION = 'Time-varying VAR models and spectral connectivity with MNE.'
with codecs.open('README.rst', encoding='utf-8-sig') as f:
    LONG_DESCRIPTION = f.read()
MAINTAINER = 'The mne-tvar developers'
MAINTAINER_EMAIL = 'mne_analysis@nmr.mgh.harvard.edu'
URL = 'https://github.com/mne-tools/mne-tvar'
LICENSE = 'BSD-3'
DOWNLOAD_URL = 'https://github.com/mne-tools/mne-tvar'
VERSION = version
INSTALL_REQUIRES = ['numpy', 'scipy', 'mne>=1.6', 'xarray', 'h5netcdf[h5py]',
                    'tqdm']
CLASSIFIERS = ['Intended Audience :: Science/Research',
               'Intended Audience :: Developers',
               'License :: OSI Approved',
               'Programming Language :: Python',
               'Topic :: Software Development',
               'Topic :: Scientific/Engineering',
               'Operating System :: Microsoft :: Windows',
               'Operating System :: POSIX',
               'Operating System :: Unix',
               'Operating System :: MacOS',
               'Programming Language :: Python :: 3.9',
               'Programming Language :: Python :: 3.10',
               'Programming Language :: Python :: 3.11',
               ]
EXTRAS_REQUIRE = {
    'tests': [
        'pytest',
        'pytest-cov',
        'statsmodels',
        'flake8',
        'pydocstyle'],
    'docs': [
        'sphinx',
        'sphinx-gallery',
        'sphinx_rtd_theme',
        'numpydoc',
        'matplotlib'
    ]
}

setup(name=DISTNAME,
      maintainer=MAINTAINER,
      maintainer_email=MAINTAINER_EMAIL,
      description=DESCRIPTION,
      license=LICENSE,
      url=URL,
      version=VERSION,
      download_url=DOWNLOAD_URL,
      long_description=LONG_DESCRIPTION,
      zip_safe=False,  # the package can run out of an .egg file
      classifiers=CLASSIFIERS,
      packages=find_packages(),
      python_requires='>=3.9',
      install_requires=INSTALL_REQUIRES,
      extras_require=EXTRAS_REQUIRE)
