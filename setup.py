# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="solutionkit",
    version="0.1.0",
    description="Isolate, fork and package solution directories",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["solutionkit*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyYAML",
        "jsonata-python",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'solutionkit=solutionkit.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
