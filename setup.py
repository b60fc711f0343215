#! /usr/bin/env python3

import os
from setuptools import setup

def read_file(file_name):
    path = os.path.join(os.path.dirname(__file__), file_name)
    with open(path) as f:
        lines = f.readlines()
    return '\n'.join(lines)

VERSION = read_file('haplolik/version.py').split("'")[1]

setup(
    name='haplolik',
    version=VERSION,
    description='Genotype likelihoods and Hardy-Weinberg haplotype priors',
    long_description=read_file('README.rst'),
    packages=[
        'haplolik',
    ],
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'numba',
        'scipy',
    ],
    extras_require={
        'test': ['pytest'],
    },
    keywords=['biology', 'bioinformatics', 'genetics', 'genomics'],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Natural Language :: English',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
    ]
    )
