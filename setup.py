from setuptools import setup, find_packages

setup(
    name="news-rag-navigator",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    python_requires=">=3.9",
    install_requires=[
        "langchain-core",
        "langchain-community",
        "langchain-huggingface",
        "transformers",
        "torch",
        "chromadb",
        "python-dotenv",
        "streamlit",
        "httpx",
        "beautifulsoup4",
        "lxml",
        "lxml_html_clean",
        "trafilatura",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "news-rag-navigator=src.startup:run_app",
        ],
    },
)
