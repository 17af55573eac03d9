#!/usr/bin/env python3
"""
Setup script for the Zoom Recording Resume Toolkit
"""

from pathlib import Path

from setuptools import find_namespace_packages, setup


def read_requirements():
    """Read runtime dependencies from requirements.txt"""
    requirements = Path(__file__).parent / "requirements.txt"
    with open(requirements, 'r') as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


setup(
    name="zoom-recording-resume",
    version="0.1.0",
    description="Resumable, checkpointed import of Zoom recordings listed in a CSV export",
    python_requires=">=3.8",
    py_modules=["config"],
    packages=find_namespace_packages(include=["app", "app.*", "scripts"]),
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest>=7.0"
        ]
    },
)
