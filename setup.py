from setuptools import setup, find_packages

setup(
    name="divelog",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "xmltodict>=0.13.0",
        "python-dateutil>=2.8.2",
        "click>=8.1.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "divelog=divelog.cli:main",
        ],
    },
    python_requires=">=3.8",
)
