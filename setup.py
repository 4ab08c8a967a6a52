#!/usr/bin/env python
"""
Installs the ofactions library

A library for parsing and marshaling Open vSwitch action lists
"""

from setuptools import setup

setup(
    name='ofactions',
    version='1.0.0',
    description=('A python library which parses and marshals '
                 'Open vSwitch flow action lists.'),
    author='Richard Sanger',
    author_email='rsanger@wand.net.nz',
    url='https://github.com/wandsdn/ofactions',
    license='Apache License 2.0',
    packages=['ofactions'],
    python_requires='>=3.6',
    install_requires=[
        "os-ken",
        "netaddr",
        ],
    test_suite='tests',
    entry_points={
        "console_scripts": [
            "normalise_actions = ofactions.normalise_actions:main",
            ]
        }
    )
