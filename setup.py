import os

from setuptools import find_packages, setup

README = os.path.join(os.path.dirname(__file__), "README.md")


def readme() -> str:
    with open(README, encoding="utf-8") as f:
        return f.read()


setup(
    name="wot_to_code",
    version="1.0.0",
    description="Generate a typed Python object model from Web of Things Thing Models",
    long_description=readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: System :: Hardware",
        "Intended Audience :: Developers",
    ],
    keywords="web of things wot thing model code generation python dataclass template",
    license="MIT",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0.0",
        "jinja2>=3.0.0",
        "httpx>=0.25.0",
        "jsonpointer>=2.4",
    ],
    extras_require={
        "generated": [
            "dataclasses-json>=0.6.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
            "dataclasses-json>=0.6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "wot_to_code=wot_to_code.wot_to_code:wot_to_code",
        ],
    },
    include_package_data=True,
    package_data={
        "wot_to_code": ["templates/**/*.jinja2"],
    },
    zip_safe=False,
)
