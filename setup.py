import os

from setuptools import find_packages, setup

README = os.path.join(os.path.dirname(__file__), "README.md")


def readme() -> str:
    if not os.path.exists(README):
        return ""
    with open(README, encoding="utf-8") as f:
        return f.read()


setup(
    name="openapi_schema_resolver",
    version="1.0.0",
    description="Resolve OpenAPI 3.0 schemas into composition-resolved schema graphs for code generators",
    long_description=readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Text Processing",
        "Intended Audience :: Developers",
    ],
    keywords="openapi schema ref allOf oneOf anyOf resolution code generation",
    license="MIT",
    packages=find_packages(),
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0.0",
        "jinja2>=3.0.0",
        "httpx>=0.24.0",
        "PyYAML>=6.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "openapi_schema_resolver=openapi_schema_resolver.openapi_schema_resolver:openapi_schema_resolver",
        ],
    },
    include_package_data=True,
    package_data={
        "openapi_schema_resolver": [
            "pipeline/instrumentation/templates/*.jinja2",
            "tests/test_data/*",
        ],
    },
    zip_safe=False,
)
