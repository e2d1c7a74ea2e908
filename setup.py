# setup.py
from setuptools import setup, find_packages

setup(
    name="scenario-db",
    version="0.1.0",
    description="Persistence for freeway CTM simulation and estimation reports",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
