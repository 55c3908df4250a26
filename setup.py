from setuptools import setup, find_packages

setup(
    name="tdb-containers",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "tenacity>=8.0",
        "python-dotenv>=1.0",
        "docker>=7.0",
        "testcontainers[mssql]>=4.0",
        "sqlalchemy>=2.0",
        "pymssql>=2.2",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tdb=tdb.CLI.main:main",
        ],
        "pytest11": [
            "tdb=tdb.pytest_plugin",
        ],
    },
)
