# -*- coding: utf-8 -*-
import pathlib
import site
import sys

import setuptools

# odd bug with develop (editable) installs, see: https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

required = [
    "numpy",
    "pyserial>=3.5",
    "loguru",
    "simplejson>=3.19.2",
    "rich>=13.0.0",
    "click>=8.0.0",
    "click-option-group",
]

test_required = [
    "pytest",
]

here = pathlib.Path(__file__).parent.resolve()

long_description = (here / "README.md").read_text(encoding="utf-8")

# Read version
version = {}
with open(here / "src/usmu/_version.py", "r") as f:
    exec(f.read(), version)

if __name__ == "__main__":
    setuptools.setup(
        name="usmu",
        version=version["__version__"],
        description="Driver and IV curve recorder for the uSMU source-measure unit.",
        long_description=long_description,
        long_description_content_type="text/markdown",
        keywords=[
            "SMU",
            "source measure unit",
            "IV curve",
            "serial",
        ],
        classifiers=[
            "License :: OSI Approved :: MIT License",
            "Development Status :: 3 - Alpha",
        ],
        license="MIT",
        package_dir={"": "src"},
        packages=setuptools.find_packages(
            where="src",
            exclude=["*.test", "*.test.*", "test.*", "test", "test_*"],
        ),
        entry_points={
            "console_scripts": [
                "usmu=usmu.cli:cli",
            ],
        },
        install_requires=required,
        extras_require={"test": test_required},
        python_requires=">= 3.11",
        setup_requires=["wheel"],  # force install of wheel first
    )
