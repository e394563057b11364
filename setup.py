from setuptools import setup, find_packages

setup(
    name="forgeguard",
    version="0.1.0",
    description="Trust scoring and submission guarding for freelancer credentials",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "pynacl>=1.5.0",
        "pydantic>=2.0",
        "python-json-logger>=3.1",
    ],
    extras_require={"dev": ["pytest>=7.0", "pytest-asyncio>=0.21"]},
    entry_points={"console_scripts": ["forgeguard=forgeguard.cli:main"]},
    python_requires=">=3.9",
    license="CC0-1.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security",
        "Topic :: Software Development :: Libraries",
        "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "Programming Language :: Python :: 3",
    ],
    keywords="credentials trust reputation rate-limiting validation freelance",
)
