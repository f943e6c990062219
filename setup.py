"""Setup configuration for StormSafe."""

from setuptools import setup, find_packages

with open("docs/README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="stormsafe",
    version="0.1.0",
    description="Storm-aware NYC trip advisor fusing weather, MTA/PATH status and routing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.25.0",
        "gtfs-realtime-bindings>=1.0.0",
        "protobuf>=3.17.0",
        "anthropic>=0.30.0",
        "pydantic-settings>=2.0",
    ],
    extras_require={
        "dev": ["pytest>=6.0", "httpx", "black", "flake8"],
    },
)
