"""Script to ingest news articles into the RAG pipeline and run a test query."""
import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path
import logging

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Add project root to Python path to allow src imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from src.core.service import ChatService
from src.rag.pipeline import create_pipeline
from src.utils.config import INGEST_LIMIT
from src.utils.error_handler import IngestionError

# Mock news articles for offline testing
_now = datetime.now(timezone.utc).isoformat()
MOCK_ARTICLES = [
    {
        "title": "AI Breakthrough in Natural Language Understanding",
        "text": "Researchers have made a significant breakthrough in AI that allows machines to better understand and generate human-like text. The new model shows improved performance on various language tasks.",
        "url": "https://example.com/ai-breakthrough",
        "publishedAt": _now,
        "source": "mock",
    },
    {
        "title": "Global Tech Conference Announces New Innovations",
        "text": "The annual tech conference unveiled several groundbreaking technologies, including advancements in quantum computing and renewable energy solutions.",
        "url": "https://example.com/tech-conference",
        "publishedAt": _now,
        "source": "mock",
    },
    {
        "title": "New Study Shows Benefits of Remote Work",
        "text": "A comprehensive study reveals that remote work has led to increased productivity and job satisfaction for many employees, though challenges in team collaboration remain.",
        "url": "https://example.com/remote-work-study",
        "publishedAt": _now,
        "source": "mock",
    },
    {
        "title": "Tech Giant Launches New Smartphone with Advanced Features",
        "text": "The latest smartphone from a leading tech company features an improved camera system, longer battery life, and enhanced security features.",
        "url": "https://example.com/new-smartphone",
        "publishedAt": _now,
        "source": "mock",
    },
    {
        "title": "Cybersecurity Threats on the Rise in 2025",
        "text": "A new report highlights the increasing sophistication of cyber attacks and the need for stronger security measures across all industries.",
        "url": "https://example.com/cybersecurity-report",
        "publishedAt": _now,
        "source": "mock",
    },
]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="Load the built-in mock articles instead of live feeds")
    parser.add_argument("--limit", type=int, default=INGEST_LIMIT, help="Maximum number of live articles to fetch")
    parser.add_argument("--query", default="What are the latest AI breakthroughs?", help="Test query to run afterwards")
    return parser.parse_args(argv)


async def run(args) -> None:
    service = ChatService(create_pipeline())

    if args.seed:
        logger.info("Adding mock articles to the pipeline...")
        added = await service.seed(MOCK_ARTICLES)
        logger.info(f"Added {added} mock articles")
    else:
        result = await service.ingest(args.limit)
        logger.info(f"Fetched {result['ingested']} articles, {result['added']} new")

    logger.info(f"Testing the pipeline with query: {args.query}")
    response = await service.pipeline.query(args.query)
    print(f"\nAnswer:\n{response['answer']}\n")
    print(f"Sources found: {len(response['sources'])}")
    for i, source in enumerate(response["sources"], start=1):
        print(f"{i}. {source['metadata'].get('title')}")


def main():
    """Main function to ingest documents."""
    args = parse_args()
    try:
        asyncio.run(run(args))
    except IngestionError as ie:
        logger.error(f"Ingestion failed: {ie}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error during document ingestion: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
