from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/payloadtools").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".")}

setup(
    name="payload-tools",
    version="0.1.0",
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "typer>=0.9",
        "PyYAML>=6.0",
        "Jinja2>=3.1",
        "jsonschema>=4.0",
        "pydantic>=2.0",
        "pandas>=1.5",
        "paramiko>=3.0",
    ],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"console_scripts": ["payloadtools=payloadtools.cli:app"]},
    **pkg_args
)
