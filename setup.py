from setuptools import setup, find_packages


setup(
    name="zipplus",
    version="1.0.0",
    packages=find_packages(include=["zipplus", "zipplus.*"]),
    description="A small ZIP-inspired archive container with store, deflate and lzma entries.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "zipplus=zipplus.cli:main",
        ]
    },
)
