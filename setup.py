#!/usr/bin/env python3
"""Setup script for InkMap."""

import os
import sys
from setuptools import setup, find_packages


def _run_install_preflight() -> None:
    """Fail fast on unsupported interpreters.

    Note: installing from a wheel will not execute setup.py, so we also
    enforce this at runtime via `inkmap.launcher`.
    """
    if os.environ.get("INKMAP_SKIP_PREFLIGHT") == "1":
        return
    try:
        from inkmap.preflight import run_preflight_or_die
        # Do NOT require a display at install time, and do NOT require
        # Python deps before pip has had a chance to install them.
        run_preflight_or_die(require_display=False, check_deps=False)
    except SystemExit:
        raise
    except Exception as exc:  # pylint: disable=broad-except
        sys.stderr.write("\nInkMap preflight error while installing:\n")
        sys.stderr.write(str(exc) + "\n")
        raise SystemExit(1)


_run_install_preflight()

setup(
    name="inkmap",
    version="1.0.0",
    description="A handwriting-first diagram editor for GTK 4",
    author="InkMap Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyGObject>=3.46.0",
        "pycairo>=1.25.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "inkmap=inkmap.launcher:main",
        ],
        "gui_scripts": [
            "inkmap-gui=inkmap.launcher:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: X11 Applications :: GTK",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Graphics :: Editors",
    ],
)
