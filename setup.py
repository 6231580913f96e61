#!/usr/bin/env python3

import re
from pathlib import Path
from setuptools import setup, find_packages

def version():
    init = Path(__file__).with_name('gerberx3') / '__init__.py'
    return re.search(r"^__version__ = '([^']*)'$", init.read_text(), re.MULTILINE)[1]

setup(
    name='gerberx3',
    version=version(),
    author='jaseg, XenGi',
    author_email='gerbonara@jaseg.de',
    description='Validating parser for Gerber X3 PCB layer files',
    long_description=Path(__file__).with_name('README.md').read_text(),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests']),
    include_package_data=True,
    install_requires=['click'],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'gerberx3 = gerberx3.cli:cli',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: Manufacturing',
        'License :: OSI Approved :: Apache Software License',
        'Natural Language :: English',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)',
        'Topic :: Utilities',
    ],
    keywords='gerber pcb parser',
    python_requires='>=3.10',
)
