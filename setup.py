from setuptools import setup, find_packages

setup(
    name="hunkedit",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        "rich",
        "textual>=0.47",
        "watchdog>=3.0",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "hunkedit=hunkedit.cli:main",
        ],
    },
    description="Terminal client for inspecting and editing git changes line by line.",
)
