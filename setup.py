# setup.py
from setuptools import setup, find_packages

setup(
    name="goal_scout",
    version="0.1.0",
    description="Goal-directed asynchronous web crawler GoalScout",
    packages=find_packages(include=["goal_scout", "goal_scout.*"]),
    package_data={"goal_scout": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "jinja2>=3.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "goal-scout=goal_scout.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
