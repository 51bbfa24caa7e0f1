from setuptools import setup

setup(
    name="pagekeeper",
    version="0.1.0",
    py_modules=[
        "config",
        "constants",
        "logger",
        "models",
        "validation",
        "database",
        "auth",
        "book_service",
        "analytics",
        "api_utils",
        "pagekeeper",
    ],
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    python_requires=">=3.8",
    description="A personal reading tracker with shelves, reading stats and yearly reading challenges",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
