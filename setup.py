from setuptools import setup, find_packages

setup(
    name="bond_cashflow_engine",
    version="0.1.0",
    description="Bond cash-flow projection and valuation engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
