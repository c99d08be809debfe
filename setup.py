from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="tbwmon",
    version="0.1.0",
    author="Franklin Butahe",
    author_email="franklinbutahe@example.com",
    description="Daily SSD Total Bytes Written monitoring with a clock tamper guard",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/srwinalot/tbwmon",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Hardware",
        "Topic :: System :: Monitoring",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",                 # Configuration management
        "sqlalchemy>=2.0.0",           # Database ORM
        "requests>=2.26.0",            # HTTP client for the time service
        "pydantic>=2.0.0",             # Data validation
        "click>=8.0.0",                # CLI utilities
        "fastapi>=0.100.0",            # REST API
        "uvicorn>=0.22.0",             # ASGI server
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.24.0",             # FastAPI TestClient transport
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.24.0",
            "flake8>=6.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
            "isort>=5.10.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tbwmon=tbwmon.cli:main",
        ],
    },
)
