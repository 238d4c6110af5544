# setup.py
from setuptools import setup, find_packages

install_requires = [
    "blake3>=0.3",
    "setproctitle>=1.3",
    "tqdm>=4.60",
]

extras_require = {
    "test": [
        "pytest>=7",
        "pytest-asyncio>=0.21",
    ],
}

setup(
    name="progressed-hashing",
    version="0.1.0",
    description="Concurrent recursive file hashing with incremental progress events",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "progressed-hash=progressed_hashing.cli:main",
        ],
    },
)
