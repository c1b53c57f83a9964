# setup.py
from setuptools import setup, find_packages

setup(
    name="micdog",
    version="0.1.0",
    description="Personal finance transaction tracker with a web UI, stats and CSV import/export",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"webapp": ["templates/*.html", "static/*"]},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0",
        "pyyaml>=5.3",
        "python-dotenv>=1.0",
        "fastapi>=0.110",
        "uvicorn>=0.23",
        "jinja2>=3.1",
        "itsdangerous>=2.1",
        "python-multipart>=0.0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "micdog=finance_tracker.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
