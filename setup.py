from setuptools import setup, find_packages

setup(
    name="tictac-stakes",
    version="0.1.0",
    packages=find_packages(include=["tictac", "tictac.*"]),
    include_package_data=True,
    install_requires=[
        "loguru>=0.7.0",
        "pydantic>=2.0.0",
        "Click>=8.0",
        "aiohttp>=3.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "tictac=tictac.main:cli",
        ],
    },
    python_requires=">=3.9",
    author="Tic-Tac Stakes Team",
    description="Stake STX on on-chain tic-tac-toe games, with an optional lending pool",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
)
