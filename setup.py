#!/usr/bin/env python
# -*- encoding: utf-8 -*-

"""Setup Module for Folio, paginated result sets with page caching"""

import io
import re

from os.path import dirname, join

from setuptools import find_packages, setup


def read(*names, **kwargs):
    """Helper method to read files"""
    return io.open(
        join(dirname(__file__), *names),
        encoding=kwargs.get("encoding", "utf8"),
    ).read()


sqlite_requires = ["sqlalchemy>=1.4.50"]
postgresql_requires = ["psycopg2>=2.9.9", "sqlalchemy>=1.4.50"]
marshmallow_requires = ["marshmallow>=3.15.0"]

install_requires = marshmallow_requires

all_external_requires = sqlite_requires + postgresql_requires

testing_requires = sqlite_requires + [
    "pytest-cov>=4.1.0",
    "pytest-mock==3.12.0",
    "pytest>=7.4.3",
]

dev_requires = testing_requires + [
    "black>=23.11.0",
    "check-manifest>=0.49",
    "coverage>=7.3.2",
    "nox>=2023.4.22",
    "pre-commit>=2.16.0",
    "twine>=4.0.2",
]

setup(
    name="folio",
    version="0.1.0",
    license="BSD 3-Clause License",
    description="Paginated result sets with page caching, prefetch and count estimation",
    long_description=re.compile("^.. start-badges.*^.. end-badges", re.M | re.S).sub(
        "", read("README.rst")
    ),
    long_description_content_type="text/x-rst",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    classifiers=[
        # complete classifier list: http://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords=["pagination", "result sets", "cursor", "page cache", "prefetch"],
    install_requires=install_requires,
    extras_require={
        "postgresql": postgresql_requires,
        "sqlite": sqlite_requires,
        "sqlalchemy": sqlite_requires,
        "marshmallow": marshmallow_requires,
        "external": all_external_requires,
        "test": testing_requires,
        "tests": testing_requires,
        "testing": testing_requires,
        "dev": dev_requires,
        "all": dev_requires,
    },
)
