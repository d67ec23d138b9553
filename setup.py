import os
import re
import setuptools

PKG_NAME = "methylAge"

HERE = os.path.abspath(os.path.dirname(__file__))

PATTERN = r'^{target}\s*=\s*([\'"])(.+)\1$'

AUTHOR = re.compile(PATTERN.format(target='__author__'), re.M)
VERSION = re.compile(PATTERN.format(target='__version__'), re.M)
LICENSE = re.compile(PATTERN.format(target='__license__'), re.M)
AUTHOR_EMAIL = re.compile(PATTERN.format(target='__author_email__'), re.M)


def parse_init():
    with open(os.path.join(HERE, PKG_NAME, '__init__.py')) as f:
        file_data = f.read()
    return [regex.search(file_data).group(2) for regex in
            (AUTHOR, VERSION, LICENSE, AUTHOR_EMAIL)]


with open(os.path.join(HERE, "README.md"), "r") as fh:
    long_description = fh.read()

author, version, license, author_email = parse_init()

setuptools.setup(
    name=PKG_NAME,
    author=author,
    author_email=author_email,
    license=license,
    version=version,
    description="Age regression from DNA methylation, compared across probe sets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(include=['methylAge',
                                               'methylAge.*']),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: European Union Public Licence 1.2 (EUPL 1.2)",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.10',
    install_requires=[
        "xarray>=2023.10.1",
        "netCDF4>=1.6.5",
        "pandas>=2.0",
        "scikit-learn>=1.3.2",
        "numpy>=1.26",
        "PyYAML>=6.0.1",
        "torch>=2.1.0",
        'tqdm>=4.66.1'],
    extras_require={
        "test": ["pytest>=7.4"]},
    entry_points={
        "console_scripts": ["methylAge-study=methylAge.cli:main"]},
    include_package_data=True,
)
