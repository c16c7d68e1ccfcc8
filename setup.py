from setuptools import setup, find_packages

setup(
    name="credtrust",
    version="0.1.0",
    description="Credential trust network — institution verification, credential issuance and fraud review",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=["python-json-logger>=3.1.0"],
    extras_require={"dev": ["pytest>=7.0"]},
    python_requires=">=3.9",
    license="CC0-1.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "Programming Language :: Python :: 3",
    ],
    keywords="credentials verification revocation fraud trust registry",
)
