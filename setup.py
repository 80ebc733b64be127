from setuptools import setup, find_packages

setup(
    name="practiceiq-backend",
    version="0.1.0",
    packages=find_packages(exclude=["practiceiq.tests", "practiceiq.tests.*"]),
    install_requires=[
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy>=2.0.0",
        "python-dotenv>=0.19.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
)
