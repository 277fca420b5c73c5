from setuptools import setup, find_packages

setup(
    name="common-py",
    version="0.2.0",
    packages=find_packages(),
    install_requires=[],
)
