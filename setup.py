from setuptools import setup, find_packages

setup(
    name="cascade-extractor",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "PyMuPDF>=1.23.0",
        "pdfplumber>=0.10.0",
        "openai>=1.3.0",
        "anthropic>=0.25.0",
        "google-generativeai>=0.5.0",
        "pytesseract>=0.3.10",
        "Pillow>=10.0.0",
        "click>=8.1.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pdf-extract=cascade_extractor.cli:main",
        ],
    },
)
