#!/usr/bin/env python
# -*- coding: utf-8 -*-
import io
import re

import setuptools

with io.open('src/wadors_loader/__init__.py', 'rt', encoding='utf8') as f:
    version = re.search(r'__version__ = \'(.*?)\'', f.read()).group(1)


setuptools.setup(
    name='wadors-image-loader',
    version=version,
    description=(
        'Loader of image frames from DICOMweb services via WADO-RS.'
    ),
    license='MIT',
    platforms=['Linux', 'MacOS', 'Windows'],
    classifiers=[
        'Environment :: Web Environment',
        'License :: OSI Approved :: MIT License',
        'Operating System :: MacOS',
        'Operating System :: Microsoft :: Windows',
        'Operating System :: POSIX :: Linux',
        'Intended Audience :: Science/Research',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Multimedia :: Graphics',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Development Status :: 3 - Alpha',
    ],
    entry_points={
        'console_scripts': ['wadors_loader = wadors_loader.cli:main'],
    },
    include_package_data=True,
    packages=setuptools.find_packages('src'),
    package_dir={'': 'src'},
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-localserver>=0.7',
        ],
    },
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.19',
        'requests>=2.18',
        'Pillow>=8.3',
        'pydicom>=2.2,<4',
    ]
)
