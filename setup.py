from setuptools import setup, find_packages

setup(
    name="tsgraph",
    version="0.1.0",
    description="tsgraph — lowers TypeScript sources into a closed graph vocabulary",
    packages=find_packages(include=["tsgraph", "tsgraph.*"]),
    python_requires=">=3.10",
    install_requires=[
        "tree-sitter>=0.23.0",
        "tree-sitter-typescript>=0.23.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tsgraph=tsgraph.cli:main",
        ],
    },
)
