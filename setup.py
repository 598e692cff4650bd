"""Setup configuration for FactSage - pattern-learning conversational agent"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="factsage",
    version="0.1.0",
    author="Md. Abid Hasan Rafi",
    author_email="contact@abidhasanrafi.com",
    description="FactSage — conversational agent that learns facts from what you teach it",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "beautifulsoup4>=4.12.0",
        "lxml>=4.9.0",
        "numpy>=1.24.0",
        "colorama>=0.4.6",
        "tqdm>=4.66.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "factsage=factsage.cli:main",
        ],
    },
)
