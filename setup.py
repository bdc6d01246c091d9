#!/usr/bin/env python

import re
import os.path

from setuptools import setup, find_packages
from codecs import open

here = os.path.abspath(os.path.dirname(__file__))

# Get the long description from the README file
with open(os.path.join(here, 'README.rst'), encoding='utf-8') as file:
    long_description = file.read()

# Get the requirements from the local requirements.txt file
with open(os.path.join(here, 'requirements.txt'), encoding='utf-8') as file:
    requirements = [ l for l in file.read().splitlines() if l ]

# Get the version without importing the package
with open(os.path.join(here, 'relaybox', '__init__.py'), encoding='utf-8') as file:
    version = re.search(r'^__version__ = "([^"]+)"', file.read(), re.M).group(1)

setup(
    name='relaybox',

    # Versions should comply with PEP440.  For a discussion on single-sourcing
    # the version across setup.py and the project code, see
    # https://packaging.python.org/en/latest/single_source_version.html
    version=version,

    description='Release captured email messages through an SMTP relay',
    long_description=long_description,
    long_description_content_type='text/x-rst',

    # Choose your license
    license='Simplified BSD',

    # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 3 - Alpha',

        # Indicate who your project is intended for
        'Intended Audience :: Developers',
        'Topic :: Communications :: Email',

        'License :: OSI Approved :: BSD License',

        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],

    # What does your project relate to?
    keywords='email relay release mailbox',

    packages=find_packages(exclude=['contrib', 'docs', 'tests', 'tests.*']),

    python_requires='>=3.10',

    # List run-time dependencies here.  These will be installed by pip when
    # your project is installed.
    install_requires=requirements,

    # List additional groups of dependencies here (e.g. development
    # dependencies). You can install these using the following syntax,
    # for example:
    # $ pip install -e .[dev,test]
    extras_require={
        'dev': ['twine',],
        'test': ['pytest', 'httpx'],
    },

    entry_points={
        'console_scripts': [
            'relayboxd=relaybox.relayboxd:run',
        ],
    },

    zip_safe = True,
)
