"""
Setup file.
"""

from setuptools import setup

KEYWORDS = "julia compiler static shared library executable aot build"


if __name__ == "__main__":
    setup(
        keywords=KEYWORDS,
        package_data={"jlbuild": ["assets/program.c"]},
        include_package_data=True)
