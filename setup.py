from setuptools import setup

# metadata and dependencies are defined in pyproject.toml,
# this shim only keeps `python setup.py develop` working for the src layout.
setup(package_dir={"": "src"})
