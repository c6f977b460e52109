"""
Canteen - Schema migrations for the Canteen site database
"""

from setuptools import setup, find_packages

setup(
    name="canteen-migrations",
    version="1.4.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    description="Forward-only, versioned schema upgrades for the Canteen site database",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    install_requires=[
        "click>=8.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
        ],
        "mysql": ["PyMySQL>=1.0.0"],
    },
    entry_points={
        "console_scripts": [
            "canteen-migrate=canteen.cli:main",
        ],
    },
)
