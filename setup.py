"""
modgen - Express + Mongoose Module Generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="modgen",
    version="0.2.0",
    author="Diegoproggramer",
    author_email="",
    description="⚡ Scaffold Express + Mongoose + Zod modules with Postman and Swagger docs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/modgen",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "httpx>=0.24.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "modgen=modgen.cli:main",
        ],
    },
    keywords="express, mongoose, zod, generator, scaffolding, postman, swagger, code-generator",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/modgen/issues",
        "Source": "https://github.com/Diegoproggramer/modgen",
    },
)
