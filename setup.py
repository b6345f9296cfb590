#!/usr/bin/env python3
"""Setup script for sony_av package."""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="sony-av-control",
    version="1.0.0",
    author="",
    author_email="",
    description="Monitor and control a PlayStation 5 and Sony Bravia TVs over the LAN",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Home Automation",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="sony bravia ps5 playstation mqtt smart-tv home-automation",
    install_requires=[
        "paho-mqtt>=2.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sonyav=sony_av.cli:main",
            "sony2mqtt=sony2mqtt.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
