from setuptools import setup, find_packages

setup(
    name="patch_agent",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "patchagent=patch_agent.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Parse LLM SEARCH/REPLACE edit blocks and apply them to a codebase.",
)
