#!/usr/bin/python3
# Setup file for blobwalk
# Copyright (C) 2026 Blobwalk contributors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["pytest"]


setup(
    name="blobwalk",
    version="0.1.0",
    description="Git walk transport over eventually-consistent blob stores",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    license="Apache-2.0 OR GPL-2.0-or-later",
    python_requires=">=3.10",
    packages=["blobwalk"],
    package_data={"": ["py.typed"]},
    install_requires=["urllib3>=2.2.2"],
    extras_require={"test": tests_require},
    entry_points={"console_scripts": ["blobwalk=blobwalk.cli:_main"]},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
    ],
)
